from django.contrib import admin

from .models import CustomDashboard, InsightNarrative, Survey, SurveyResponse


@admin.register(Survey)
class SurveyAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "owner", "is_active", "created_at")
    list_filter = ("category", "is_active", "created_at")
    search_fields = ("title", "description")
    readonly_fields = ("created_at",)


@admin.register(SurveyResponse)
class SurveyResponseAdmin(admin.ModelAdmin):
    list_display = (
        "survey",
        "user",
        "question_index",
        "answer",
        "response_year",
        "country",
        "is_verified",
        "created_at",
    )
    list_filter = ("response_year", "country", "is_verified", "survey__category")
    search_fields = ("survey__title", "user__username", "answer")
    # Responses are a historical record; they are never edited by hand
    readonly_fields = (
        "survey",
        "user",
        "question_index",
        "answer",
        "response_year",
        "first_name",
        "last_name",
        "phone_number",
        "country",
        "is_verified",
        "created_at",
    )

    def has_add_permission(self, request):
        return False


@admin.register(InsightNarrative)
class InsightNarrativeAdmin(admin.ModelAdmin):
    list_display = ("title", "insight_type", "user", "model_name", "created_at")
    list_filter = ("insight_type", "created_at")
    search_fields = ("title", "content")
    readonly_fields = ("created_at",)


@admin.register(CustomDashboard)
class CustomDashboardAdmin(admin.ModelAdmin):
    list_display = ("name", "user", "is_public", "updated_at")
    list_filter = ("is_public",)
    search_fields = ("name", "description", "user__username")
    readonly_fields = ("created_at", "updated_at")

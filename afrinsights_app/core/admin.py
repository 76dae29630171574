from django.contrib import admin

from .models import UserVerification


@admin.register(UserVerification)
class UserVerificationAdmin(admin.ModelAdmin):
    list_display = (
        "user",
        "first_name",
        "last_name",
        "country",
        "phone_number",
        "is_verified",
        "created_at",
        "verified_at",
    )
    list_filter = ("country", "is_verified", "created_at")
    search_fields = ("first_name", "last_name", "phone_number", "user__username")
    readonly_fields = ("created_at", "verified_at")
    # Codes are never shown or edited through the admin
    exclude = ("verification_code",)

from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "afrinsights_app.core"
    verbose_name = "Identity verification"

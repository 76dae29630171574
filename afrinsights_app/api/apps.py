from django.apps import AppConfig


class ApiConfig(AppConfig):
    name = "afrinsights_app.api"
    verbose_name = "JSON API"

from django.contrib import admin
from django.urls import include, path

from afrinsights_app.core import views as core_views

urlpatterns = [
    path("admin/", admin.site.urls),
    path("healthz", core_views.healthz, name="healthz"),
    path("api/", include("afrinsights_app.api.urls")),
]

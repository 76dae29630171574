from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import (
    CustomDashboardViewSet,
    InsightsViewSet,
    SurveyViewSet,
    VerificationViewSet,
)

router = DefaultRouter()
router.register(r"surveys", SurveyViewSet, basename="survey")
router.register(r"verification", VerificationViewSet, basename="verification")
router.register(r"insights", InsightsViewSet, basename="insights")
router.register(r"dashboards", CustomDashboardViewSet, basename="dashboard")

urlpatterns = [
    path("", include(router.urls)),
    path("token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
]

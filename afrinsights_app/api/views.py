from dataclasses import asdict
import logging
from typing import Any

from django.conf import settings
from rest_framework import permissions, serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from afrinsights_app.core.exceptions import (
    AlreadyCompletedError,
    InsightsError,
    InvalidAnswerError,
    InvalidSessionTransition,
    PhoneFormatError,
    StoreUnavailableError,
    UnsupportedCountryError,
    VerificationMismatchError,
    VerificationRequiredError,
)
from afrinsights_app.core.services.verification import (
    confirm_verification,
    get_current_verification,
    latest_verification,
    start_verification,
)
from afrinsights_app.surveys.models import CustomDashboard, InsightNarrative, Survey
from afrinsights_app.surveys.services.eligibility import check_eligibility
from afrinsights_app.surveys.services.insights import (
    InsightFilter,
    load_dashboard,
    load_survey_insights,
)
from afrinsights_app.surveys.services.narrative import generate_narrative
from afrinsights_app.surveys.services.session import SessionState, SurveySession

logger = logging.getLogger(__name__)

# Most recent narratives returned by the list endpoint
NARRATIVE_LIST_LIMIT = 50

ERROR_STATUS = {
    AlreadyCompletedError: status.HTTP_409_CONFLICT,
    InvalidSessionTransition: status.HTTP_409_CONFLICT,
    InvalidAnswerError: status.HTTP_400_BAD_REQUEST,
    VerificationMismatchError: status.HTTP_400_BAD_REQUEST,
    PhoneFormatError: status.HTTP_400_BAD_REQUEST,
    UnsupportedCountryError: status.HTTP_400_BAD_REQUEST,
    VerificationRequiredError: status.HTTP_403_FORBIDDEN,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_response(exc: InsightsError) -> Response:
    """Convert a domain error into a JSON error response."""
    http_status = status.HTTP_400_BAD_REQUEST
    # Most specific class wins, so subclasses inherit their parent's status
    for klass in type(exc).__mro__:
        if klass in ERROR_STATUS:
            http_status = ERROR_STATUS[klass]
            break

    body: dict[str, Any] = {
        "error": exc.code,
        "detail": str(exc),
        "retryable": exc.retryable,
    }
    if isinstance(exc, AlreadyCompletedError):
        body["last_completed_year"] = exc.last_completed_year
    return Response(body, status=http_status)


class DomainErrorMixin:
    """Render domain errors as ``{"error", "detail"}`` JSON responses."""

    def handle_exception(self, exc):
        if isinstance(exc, InsightsError):
            return _error_response(exc)
        return super().handle_exception(exc)


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------


class SurveySerializer(serializers.ModelSerializer):
    questions = serializers.SerializerMethodField()

    class Meta:
        model = Survey
        fields = ["id", "title", "description", "category", "questions", "created_at"]

    def get_questions(self, obj: Survey) -> list[dict]:
        return [question.to_dict() for question in obj.get_questions()]


class SubmissionSerializer(serializers.Serializer):
    answers = serializers.DictField(
        child=serializers.CharField(allow_blank=True, allow_null=True)
    )


class VerificationStartSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone_number = serializers.CharField(max_length=32)
    # Unsupported countries are reported by the service with a specific code
    country = serializers.CharField(max_length=64)


class VerificationConfirmSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=12, trim_whitespace=True)


class NarrativeSerializer(serializers.ModelSerializer):
    class Meta:
        model = InsightNarrative
        fields = [
            "id",
            "insight_type",
            "title",
            "content",
            "data_sources",
            "model_name",
            "created_at",
        ]
        read_only_fields = fields


class NarrativeRequestSerializer(serializers.Serializer):
    insight_type = serializers.ChoiceField(
        choices=InsightNarrative.InsightType.choices
    )
    country = serializers.CharField(required=False, allow_blank=True)
    year = serializers.IntegerField(required=False, allow_null=True)
    month = serializers.IntegerField(required=False, allow_null=True)
    # "7d", "30d", "90d", "all" or a number of days
    days = serializers.CharField(required=False, allow_blank=True)


class CustomDashboardSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomDashboard
        fields = [
            "id",
            "name",
            "description",
            "config",
            "is_public",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_config(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Dashboard config must be an object.")
        return value


def _verification_payload(verification) -> dict | None:
    if verification is None:
        return None
    data = verification.snapshot()
    data["id"] = str(verification.pk)
    data["created_at"] = verification.created_at
    data["verified_at"] = verification.verified_at
    return data


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class SurveyViewSet(DomainErrorMixin, viewsets.ReadOnlyModelViewSet):
    """Active surveys, with annual eligibility and submission."""

    serializer_class = SurveySerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Survey.objects.filter(is_active=True)

    @action(detail=True, methods=["get"])
    def eligibility(self, request, pk=None):
        survey = self.get_object()
        raw_year = request.query_params.get("year")
        try:
            year = int(raw_year) if raw_year else None
        except ValueError:
            return Response(
                {"error": "invalid_year", "detail": "year must be a whole number"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = check_eligibility(request.user, survey, year)
        return Response(
            {
                "survey_id": survey.pk,
                "eligible": result.eligible,
                "year": result.year,
                "last_completed_year": result.last_completed_year,
                "next_eligible_year": result.next_eligible_year,
            }
        )

    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        """Submit answers for the current year.

        Body: ``{"answers": {question_id: option}}``. The response year is
        always taken from the server clock.
        """
        survey = self.get_object()
        ser = SubmissionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        if settings.REQUIRE_VERIFICATION and not get_current_verification(
            request.user
        ):
            raise VerificationRequiredError(
                "Verify your identity before taking a survey."
            )

        session = SurveySession(request.user, survey)
        eligibility = session.load()
        if session.state == SessionState.INELIGIBLE:
            raise AlreadyCompletedError(
                f"You have already completed this survey in {session.year}.",
                last_completed_year=eligibility.last_completed_year,
            )

        session.answer_all(ser.validated_data["answers"])
        if session.state != SessionState.ANSWERING:
            raise InvalidAnswerError("No answers were supplied.")

        receipt = session.submit()
        return Response(
            {
                "survey_id": receipt.survey_id,
                "response_year": receipt.response_year,
                "answers_recorded": receipt.answers_recorded,
                "state": session.state.value,
            },
            status=status.HTTP_201_CREATED,
        )


class VerificationViewSet(DomainErrorMixin, viewsets.ViewSet):
    """Identity verification: status, code issue and code confirmation."""

    permission_classes = [permissions.IsAuthenticated]

    def get_throttles(self):
        # Issuing and confirming codes share a strict per-user rate
        if self.action in ("start", "confirm"):
            self.throttle_scope = "verification"
        return super().get_throttles()

    def list(self, request):
        current = get_current_verification(request.user)
        latest = latest_verification(request.user)
        return Response(
            {
                "verified": current is not None,
                "pending": latest is not None and not latest.is_verified,
                "verification": _verification_payload(current),
            }
        )

    @action(detail=False, methods=["post"])
    def start(self, request):
        ser = VerificationStartSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        verification = start_verification(request.user, **ser.validated_data)
        data = _verification_payload(verification)
        if settings.VERIFICATION_EXPOSE_CODE:
            data["demo_code"] = verification.verification_code
        return Response(data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def confirm(self, request):
        ser = VerificationConfirmSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        verification = confirm_verification(
            request.user, ser.validated_data["code"]
        )
        return Response(
            {"verified": True, "verification": _verification_payload(verification)}
        )


class InsightsViewSet(DomainErrorMixin, viewsets.ViewSet):
    """Aggregated survey insights and AI narratives."""

    permission_classes = [permissions.IsAuthenticated]

    def list(self, request):
        insights = load_survey_insights(places=0)
        return Response({"surveys": [asdict(insight) for insight in insights]})

    @action(detail=False, methods=["get"])
    def dashboard(self, request):
        try:
            filters = InsightFilter.coerce(request.query_params)
        except ValueError as e:
            return Response(
                {"error": "invalid_filter", "detail": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(load_dashboard(filters, places=1))

    @action(detail=False, methods=["get", "post"])
    def narratives(self, request):
        if request.method == "GET":
            narratives = InsightNarrative.objects.filter(user=request.user)[
                :NARRATIVE_LIST_LIMIT
            ]
            return Response(
                {"items": NarrativeSerializer(narratives, many=True).data}
            )

        ser = NarrativeRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        try:
            filters = InsightFilter.coerce(data)
        except ValueError as e:
            return Response(
                {"error": "invalid_filter", "detail": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        narrative = generate_narrative(
            request.user, data["insight_type"], load_dashboard(filters)
        )
        return Response(
            NarrativeSerializer(narrative).data, status=status.HTTP_201_CREATED
        )


class CustomDashboardViewSet(viewsets.ModelViewSet):
    """A user's saved dashboards, most recently updated first."""

    serializer_class = CustomDashboardSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return CustomDashboard.objects.filter(user=self.request.user)

    def perform_create(self, serializer):
        dashboard = serializer.save(user=self.request.user)
        logger.info(f"User {self.request.user.pk} created dashboard {dashboard.pk}")

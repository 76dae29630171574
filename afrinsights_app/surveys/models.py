from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .questions import Question, decode_questions, encode_questions, validate_questions

User = get_user_model()


def current_year() -> int:
    return timezone.now().year


def _widget(widget_id, widget_type, title, position, data_source, chart_type=None):
    x, y, w, h = position
    config = {"dataSource": data_source, "filters": {}}
    if chart_type:
        config["chartType"] = chart_type
    return {
        "id": widget_id,
        "type": widget_type,
        "title": title,
        "position": {"x": x, "y": y, "w": w, "h": h},
        "config": config,
    }


def default_dashboard_config() -> dict:
    """Starting layout for a new custom dashboard."""
    return {
        "layout": [
            _widget("metrics", "metric", "Key Metrics", (0, 0, 12, 2), "realtime"),
            _widget(
                "participation",
                "chart",
                "Participation by Country",
                (0, 2, 6, 4),
                "countries",
                "bar",
            ),
            _widget(
                "trends",
                "chart",
                "Trends Over Time",
                (6, 2, 6, 4),
                "monthly_trends",
                "line",
            ),
            _widget(
                "categories",
                "chart",
                "Category Breakdown",
                (0, 6, 6, 4),
                "categories",
                "pie",
            ),
        ],
        "filters": [
            {
                "id": "timeRange",
                "type": "select",
                "field": "days",
                "label": "Time Range",
                "options": [
                    {"value": "7d", "label": "Last 7 days"},
                    {"value": "30d", "label": "Last 30 days"},
                    {"value": "90d", "label": "Last 90 days"},
                    {"value": "all", "label": "All time"},
                ],
                "defaultValue": "30d",
            }
        ],
        "theme": "african",
        # Milliseconds
        "refreshInterval": 300000,
    }


class Survey(models.Model):
    class Category(models.TextChoices):
        GENERAL = "General", "General"
        ECONOMIC = "Economic & Financial", "Economic & Financial"
        TECHNOLOGY = "Technology & Digital", "Technology & Digital"
        HEALTH = "Health & Healthcare", "Health & Healthcare"
        EDUCATION = "Education & Skills", "Education & Skills"
        TRANSPORT = "Transportation & Energy", "Transportation & Energy"
        GOVERNMENT = "Government & Politics", "Government & Politics"
        FAMILY = "Family & Social", "Family & Social"
        CULTURE = "Culture & Religion", "Culture & Religion"
        LIFESTYLE = "Lifestyle & Personal", "Lifestyle & Personal"

    owner = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_surveys",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(
        max_length=64, choices=Category.choices, default=Category.GENERAL
    )
    # Ordered list of {"id", "question", "options"}; see questions.py
    questions = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return self.title

    def get_questions(self) -> list[Question]:
        """Return the survey's questions in declaration order."""
        return decode_questions(self.questions)

    def set_questions(self, questions: list[Question]) -> None:
        self.questions = encode_questions(questions)

    def question_index(self, question_id: str) -> int | None:
        """Position of the question with ``question_id``, or None."""
        for idx, question in enumerate(self.get_questions()):
            if question.id == question_id:
                return idx
        return None

    def clean(self):
        super().clean()
        questions = self.get_questions()
        if self.is_active and not questions:
            raise ValidationError({"questions": "An active survey needs questions."})
        try:
            validate_questions(questions)
        except ValidationError as e:
            raise ValidationError({"questions": e.messages}) from e


class SurveyResponse(models.Model):
    """
    One answer to one question of a survey, by one user, in one year.

    A submission writes one row per answered question. The unique constraint
    makes a second submission for the same (survey, user, year) fail even if
    two requests pass the eligibility check at the same time.
    """

    survey = models.ForeignKey(
        Survey, on_delete=models.CASCADE, related_name="responses"
    )
    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="survey_responses"
    )
    question_index = models.PositiveIntegerField()
    answer = models.CharField(max_length=255)
    response_year = models.PositiveIntegerField(default=current_year, db_index=True)
    # Snapshot of the user's verification at submission time
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    phone_number = models.CharField(max_length=32, blank=True)
    country = models.CharField(max_length=64, blank=True, db_index=True)
    is_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["survey", "user", "response_year", "question_index"],
                name="one_answer_per_question_per_user_per_year",
            )
        ]
        indexes = [
            models.Index(
                fields=["survey", "user", "response_year"],
                name="surveys_sur_survey__3d9c1e_idx",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"{self.survey_id}#{self.question_index} {self.answer} "
            f"({self.response_year})"
        )


class InsightNarrative(models.Model):
    """An AI-written narrative generated from aggregated survey data."""

    class InsightType(models.TextChoices):
        EXECUTIVE_SUMMARY = "executive_summary", "Executive Summary"
        PREDICTION = "prediction", "Market Predictions"
        TREND_ANALYSIS = "trend_analysis", "Emerging Trends Analysis"
        MARKET_OPPORTUNITY = "market_opportunity", "Market Opportunities"

    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="insight_narratives"
    )
    insight_type = models.CharField(max_length=32, choices=InsightType.choices)
    title = models.CharField(max_length=255)
    content = models.TextField()
    data_sources = models.JSONField(default=list, blank=True)
    model_name = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return self.title


class CustomDashboard(models.Model):
    """A user's saved dashboard layout over the insights data."""

    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="custom_dashboards"
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    # {"layout": [widgets], "filters": [...], "theme", "refreshInterval"}
    config = models.JSONField(default=default_dashboard_config, blank=True)
    is_public = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at", "-id"]

    def __str__(self) -> str:
        return self.name

    def clean(self):
        super().clean()
        if not isinstance(self.config, dict):
            raise ValidationError({"config": "Dashboard config must be an object."})

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import afrinsights_app.surveys.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Survey",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("General", "General"),
                            ("Economic & Financial", "Economic & Financial"),
                            ("Technology & Digital", "Technology & Digital"),
                            ("Health & Healthcare", "Health & Healthcare"),
                            ("Education & Skills", "Education & Skills"),
                            ("Transportation & Energy", "Transportation & Energy"),
                            ("Government & Politics", "Government & Politics"),
                            ("Family & Social", "Family & Social"),
                            ("Culture & Religion", "Culture & Religion"),
                            ("Lifestyle & Personal", "Lifestyle & Personal"),
                        ],
                        default="General",
                        max_length=64,
                    ),
                ),
                ("questions", models.JSONField(blank=True, default=list)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="owned_surveys",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="SurveyResponse",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("question_index", models.PositiveIntegerField()),
                ("answer", models.CharField(max_length=255)),
                (
                    "response_year",
                    models.PositiveIntegerField(
                        db_index=True,
                        default=afrinsights_app.surveys.models.current_year,
                    ),
                ),
                ("first_name", models.CharField(blank=True, max_length=150)),
                ("last_name", models.CharField(blank=True, max_length=150)),
                ("phone_number", models.CharField(blank=True, max_length=32)),
                (
                    "country",
                    models.CharField(blank=True, db_index=True, max_length=64),
                ),
                ("is_verified", models.BooleanField(default=False)),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "survey",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="responses",
                        to="surveys.survey",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="survey_responses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["survey", "user", "response_year"],
                        name="surveys_sur_survey__3d9c1e_idx",
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("survey", "user", "response_year", "question_index"),
                        name="one_answer_per_question_per_user_per_year",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="InsightNarrative",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "insight_type",
                    models.CharField(
                        choices=[
                            ("executive_summary", "Executive Summary"),
                            ("prediction", "Market Predictions"),
                            ("trend_analysis", "Emerging Trends Analysis"),
                            ("market_opportunity", "Market Opportunities"),
                        ],
                        max_length=32,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("content", models.TextField()),
                ("data_sources", models.JSONField(blank=True, default=list)),
                ("model_name", models.CharField(blank=True, max_length=100)),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="insight_narratives",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]

"""
Tests for the seed_surveys management command.
"""

from io import StringIO

from django.core.management import call_command
import pytest

from afrinsights_app.surveys.management.commands.seed_surveys import SEED_SURVEYS
from afrinsights_app.surveys.models import Survey


@pytest.mark.django_db
class TestSeedSurveys:
    def test_creates_active_surveys(self):
        out = StringIO()
        call_command("seed_surveys", stdout=out)

        assert Survey.objects.filter(is_active=True).count() == len(SEED_SURVEYS)
        assert f"Created {len(SEED_SURVEYS)} surveys" in out.getvalue()
        survey = Survey.objects.get(title="Mobile Money Usage")
        assert survey.category == Survey.Category.ECONOMIC
        assert [q.id for q in survey.get_questions()] == ["q1", "q2"]

    def test_idempotent(self):
        call_command("seed_surveys", stdout=StringIO())
        out = StringIO()
        call_command("seed_surveys", stdout=out)

        assert Survey.objects.count() == len(SEED_SURVEYS)
        assert "Created 0 surveys" in out.getvalue()

    def test_dry_run_writes_nothing(self):
        out = StringIO()
        call_command("seed_surveys", "--dry-run", stdout=out)

        assert not Survey.objects.exists()
        assert "Would create survey: Mobile Money Usage" in out.getvalue()

    def test_seed_questions_are_valid(self):
        for config in SEED_SURVEYS:
            survey = Survey(title=config["title"], category=config["category"])
            survey.set_questions(config["questions"])
            survey.full_clean()

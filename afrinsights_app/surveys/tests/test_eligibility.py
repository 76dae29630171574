"""
Tests for annual eligibility and submission.
"""

from unittest.mock import patch

from django.db import DatabaseError, IntegrityError
import pytest

from afrinsights_app.core.exceptions import (
    AlreadyCompletedError,
    InvalidAnswerError,
    StoreUnavailableError,
)
from afrinsights_app.surveys.models import SurveyResponse
from afrinsights_app.surveys.services import eligibility
from afrinsights_app.surveys.services.eligibility import (
    check_eligibility,
    submit_survey,
)


@pytest.mark.django_db
class TestCheckEligibility:
    def test_eligible_without_responses(self, user, survey):
        result = check_eligibility(user, survey, 2024)
        assert result.eligible is True
        assert result.year == 2024
        assert result.last_completed_year is None
        assert result.next_eligible_year == 2024

    def test_ineligible_after_submission(self, user, survey):
        submit_survey(user, survey, {"q1": "Yes"}, 2024)

        result = check_eligibility(user, survey, 2024)
        assert result.eligible is False
        assert result.last_completed_year == 2024
        assert result.next_eligible_year == 2025

    def test_other_year_unaffected(self, user, survey):
        submit_survey(user, survey, {"q1": "Yes"}, 2024)

        result = check_eligibility(user, survey, 2025)
        assert result.eligible is True
        assert result.last_completed_year == 2024

    def test_other_user_unaffected(self, user, other_user, survey):
        submit_survey(user, survey, {"q1": "Yes"}, 2024)
        assert check_eligibility(other_user, survey, 2024).eligible is True

    def test_defaults_to_current_year(self, user, survey):
        with patch.object(eligibility.timezone, "now") as now:
            now.return_value.year = 2031
            assert check_eligibility(user, survey).year == 2031

    def test_query_failure_is_wrapped(self, user, survey):
        with patch(
            "django.db.models.query.QuerySet.exists",
            side_effect=DatabaseError("down"),
        ):
            with pytest.raises(StoreUnavailableError):
                check_eligibility(user, survey, 2024)


@pytest.mark.django_db
class TestSubmitSurvey:
    def test_writes_one_row_per_answer(self, user, survey):
        receipt = submit_survey(user, survey, {"q1": "Yes", "q2": "No"}, 2024)

        assert receipt.survey_id == survey.pk
        assert receipt.response_year == 2024
        assert receipt.answers_recorded == 2

        rows = SurveyResponse.objects.filter(user=user).order_by("question_index")
        assert [(r.question_index, r.answer, r.response_year) for r in rows] == [
            (0, "Yes", 2024),
            (1, "No", 2024),
        ]

    def test_partial_submission(self, user, survey):
        receipt = submit_survey(user, survey, {"q2": "Yes", "q1": ""}, 2024)
        assert receipt.answers_recorded == 1
        assert SurveyResponse.objects.get(user=user).question_index == 1

    def test_second_submission_same_year_rejected(self, user, survey):
        submit_survey(user, survey, {"q1": "Yes"}, 2024)

        with pytest.raises(AlreadyCompletedError) as exc_info:
            submit_survey(user, survey, {"q1": "No"}, 2024)

        assert exc_info.value.last_completed_year == 2024
        assert SurveyResponse.objects.filter(user=user).count() == 1

    def test_empty_answers_rejected(self, user, survey):
        with pytest.raises(InvalidAnswerError):
            submit_survey(user, survey, {}, 2024)
        with pytest.raises(InvalidAnswerError):
            submit_survey(user, survey, {"q1": None, "q2": ""}, 2024)

    def test_unknown_question_rejected(self, user, survey):
        with pytest.raises(InvalidAnswerError):
            submit_survey(user, survey, {"q1": "Yes", "q9": "Yes"}, 2024)
        assert not SurveyResponse.objects.exists()

    def test_answer_outside_options_rejected(self, user, survey):
        with pytest.raises(InvalidAnswerError):
            submit_survey(user, survey, {"q1": "Maybe"}, 2024)
        assert not SurveyResponse.objects.exists()

    def test_snapshot_from_verification(self, verified_user, survey):
        submit_survey(verified_user, survey, {"q1": "Yes"}, 2024)

        row = SurveyResponse.objects.get(user=verified_user)
        assert row.country == "Nigeria"
        assert row.first_name == "Ada"
        assert row.phone_number == "+2348012345678"
        assert row.is_verified is True

    def test_unverified_user_has_empty_snapshot(self, user, survey):
        submit_survey(user, survey, {"q1": "Yes"}, 2024)

        row = SurveyResponse.objects.get(user=user)
        assert row.country == ""
        assert row.is_verified is False

    def test_concurrent_submission_reported_as_completed(self, user, survey):
        with patch.object(
            SurveyResponse.objects,
            "bulk_create",
            side_effect=IntegrityError("unique"),
        ):
            with pytest.raises(AlreadyCompletedError) as exc_info:
                submit_survey(user, survey, {"q1": "Yes"}, 2024)
        assert exc_info.value.last_completed_year == 2024

    def test_store_failure_is_retryable(self, user, survey):
        with patch.object(
            SurveyResponse.objects,
            "bulk_create",
            side_effect=DatabaseError("down"),
        ):
            with pytest.raises(StoreUnavailableError) as exc_info:
                submit_survey(user, survey, {"q1": "Yes"}, 2024)

        assert exc_info.value.retryable is True
        assert not SurveyResponse.objects.exists()
        # Nothing was written, so the user can try again
        assert check_eligibility(user, survey, 2024).eligible is True

    def test_unique_constraint_blocks_duplicate_rows(self, user, survey):
        submit_survey(user, survey, {"q1": "Yes"}, 2024)
        with pytest.raises(IntegrityError):
            SurveyResponse.objects.create(
                survey=survey,
                user=user,
                question_index=0,
                answer="No",
                response_year=2024,
            )

"""
Annual survey eligibility and submission.

A user may answer each survey once per calendar year. Eligibility is checked
before the survey is shown and again immediately before writing; the database
unique constraint on (survey, user, response_year, question_index) catches the
case where two submissions pass the check at the same time.
"""

from dataclasses import dataclass
import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from afrinsights_app.core.exceptions import (
    AlreadyCompletedError,
    InvalidAnswerError,
    StoreUnavailableError,
)
from afrinsights_app.core.services.verification import get_current_verification
from afrinsights_app.surveys.models import Survey, SurveyResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibilityResult:
    """Whether a user may answer a survey in a given year."""

    eligible: bool
    year: int
    # Most recent year with a completed submission, for messaging
    last_completed_year: int | None = None

    @property
    def next_eligible_year(self) -> int:
        return self.year if self.eligible else self.year + 1


@dataclass(frozen=True)
class SubmissionReceipt:
    """Acknowledgment of a recorded submission."""

    survey_id: int
    response_year: int
    answers_recorded: int


def check_eligibility(
    user, survey: Survey, year: int | None = None
) -> EligibilityResult:
    """
    Check whether ``user`` may answer ``survey`` in ``year``.

    Args:
        user: The authenticated user
        survey: Survey to check
        year: Calendar year, defaults to the current year

    Returns:
        EligibilityResult, eligible iff no response exists for that year

    Raises:
        StoreUnavailableError: If the database cannot be queried
    """
    year = year or timezone.now().year
    responses = SurveyResponse.objects.filter(user=user, survey=survey)
    try:
        completed = responses.filter(response_year=year).exists()
        last_completed_year = (
            responses.order_by("-response_year")
            .values_list("response_year", flat=True)
            .first()
        )
    except DatabaseError as e:
        logger.error(f"Eligibility check failed for survey {survey.pk}: {e}")
        raise StoreUnavailableError("Could not check survey eligibility") from e

    return EligibilityResult(
        eligible=not completed,
        year=year,
        last_completed_year=last_completed_year,
    )


def _validated_answers(survey: Survey, answers: dict) -> list[tuple[int, str]]:
    """
    Match submitted answers to question positions.

    Unanswered questions (missing or empty values) are skipped; partial
    submissions are allowed.

    Raises:
        InvalidAnswerError: For unknown questions, answers outside the
            declared options, or when nothing was answered at all
    """
    questions = survey.get_questions()
    by_id = {question.id: (idx, question) for idx, question in enumerate(questions)}

    unknown = [str(qid) for qid in answers if str(qid) not in by_id]
    if unknown:
        raise InvalidAnswerError(
            f"Survey has no question(s): {', '.join(sorted(unknown))}"
        )

    matched = []
    for question_id, answer in answers.items():
        if answer in (None, ""):
            continue
        idx, question = by_id[str(question_id)]
        if not isinstance(answer, str) or not question.accepts(answer):
            raise InvalidAnswerError(
                f"{answer!r} is not an option for question {question.id!r}"
            )
        matched.append((idx, answer))

    if not matched:
        raise InvalidAnswerError("No answers were supplied.")
    return sorted(matched)


def submit_survey(
    user,
    survey: Survey,
    answers: dict,
    year: int | None = None,
) -> SubmissionReceipt:
    """
    Record a user's answers to a survey for a calendar year.

    One SurveyResponse is written per answered question, tagged with ``year``
    and a snapshot of the user's current verification. The rows are written
    in a single transaction.

    Args:
        user: The authenticated user
        survey: Survey being answered
        answers: Mapping of question id -> selected option
        year: Calendar year, defaults to the current year

    Returns:
        SubmissionReceipt for the recorded submission

    Raises:
        AlreadyCompletedError: If the user already answered this year
        InvalidAnswerError: If an answer does not fit its question
        StoreUnavailableError: If the database fails; safe to retry
    """
    year = year or timezone.now().year

    eligibility = check_eligibility(user, survey, year)
    if not eligibility.eligible:
        raise AlreadyCompletedError(
            f"You have already completed this survey in {year}.",
            last_completed_year=eligibility.last_completed_year,
        )

    matched = _validated_answers(survey, answers)

    try:
        verification = get_current_verification(user)
    except DatabaseError as e:
        logger.error(f"Failed to load verification for user {user.pk}: {e}")
        raise StoreUnavailableError("Could not load verification") from e
    snapshot = verification.snapshot() if verification else {}

    now = timezone.now()
    rows = [
        SurveyResponse(
            survey=survey,
            user=user,
            question_index=idx,
            answer=answer,
            response_year=year,
            created_at=now,
            **snapshot,
        )
        for idx, answer in matched
    ]

    try:
        with transaction.atomic():
            SurveyResponse.objects.bulk_create(rows)
    except IntegrityError as e:
        logger.warning(
            f"Concurrent submission rejected for survey {survey.pk}, "
            f"user {user.pk}, year {year}"
        )
        raise AlreadyCompletedError(
            f"You have already completed this survey in {year}.",
            last_completed_year=year,
        ) from e
    except DatabaseError as e:
        logger.error(f"Failed to store responses for survey {survey.pk}: {e}")
        raise StoreUnavailableError("Could not save your responses") from e

    logger.info(
        f"Recorded {len(rows)} answers for survey {survey.pk} "
        f"from user {user.pk} ({year})"
    )
    return SubmissionReceipt(
        survey_id=survey.pk, response_year=year, answers_recorded=len(rows)
    )

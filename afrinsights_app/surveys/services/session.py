"""Per-request state for taking a survey.

    LOADING -> ELIGIBLE | INELIGIBLE
    ELIGIBLE -> ANSWERING -> SUBMITTING -> COMPLETED | FAILED
    FAILED -> ANSWERING (answers kept)

INELIGIBLE is terminal until the calendar year changes.
"""

from enum import Enum
import logging

from django.utils import timezone

from afrinsights_app.core.exceptions import (
    AlreadyCompletedError,
    InsightsError,
    InvalidAnswerError,
    InvalidSessionTransition,
)

from .eligibility import (
    EligibilityResult,
    SubmissionReceipt,
    check_eligibility,
    submit_survey,
)

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    ANSWERING = "answering"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    SessionState.LOADING: {SessionState.ELIGIBLE, SessionState.INELIGIBLE},
    SessionState.ELIGIBLE: {SessionState.ANSWERING},
    SessionState.ANSWERING: {SessionState.SUBMITTING},
    SessionState.SUBMITTING: {
        SessionState.COMPLETED,
        SessionState.FAILED,
        SessionState.INELIGIBLE,
    },
    SessionState.FAILED: {SessionState.ANSWERING},
    SessionState.INELIGIBLE: set(),
    SessionState.COMPLETED: set(),
}


class SurveySession:
    """Drives one user through one survey for one year."""

    def __init__(self, user, survey, year: int | None = None):
        self.user = user
        self.survey = survey
        self.year = year or timezone.now().year
        self.state = SessionState.LOADING
        self.answers: dict[str, str] = {}
        self.eligibility: EligibilityResult | None = None
        self.receipt: SubmissionReceipt | None = None
        self.error: InsightsError | None = None

    def _move(self, target: SessionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidSessionTransition(
                f"Cannot move survey session from {self.state.value} to {target.value}"
            )
        self.state = target

    def load(self) -> EligibilityResult:
        self.eligibility = check_eligibility(self.user, self.survey, self.year)
        self._move(
            SessionState.ELIGIBLE
            if self.eligibility.eligible
            else SessionState.INELIGIBLE
        )
        return self.eligibility

    def answer(self, question_id: str, option: str) -> None:
        """Record or change the answer to one question."""
        if self.state in (SessionState.ELIGIBLE, SessionState.FAILED):
            self._move(SessionState.ANSWERING)
        elif self.state != SessionState.ANSWERING:
            raise InvalidSessionTransition(
                f"Cannot answer questions while {self.state.value}"
            )
        question = next(
            (q for q in self.survey.get_questions() if q.id == question_id), None
        )
        if question is None:
            raise InvalidAnswerError(f"Survey has no question {question_id!r}")
        if not question.accepts(option):
            raise InvalidAnswerError(
                f"{option!r} is not an option for question {question_id!r}"
            )
        self.answers[question_id] = option

    def answer_all(self, answers: dict) -> None:
        for question_id, option in answers.items():
            if option in (None, ""):
                continue
            self.answer(str(question_id), option)

    @property
    def is_complete(self) -> bool:
        """True when every question has an answer."""
        return all(q.id in self.answers for q in self.survey.get_questions())

    def submit(self) -> SubmissionReceipt:
        """
        Submit the collected answers.

        On failure the session moves to FAILED with answers kept, except for
        AlreadyCompletedError which ends in INELIGIBLE. The error is re-raised.
        """
        if self.state != SessionState.ANSWERING:
            raise InvalidSessionTransition(f"Cannot submit while {self.state.value}")
        self._move(SessionState.SUBMITTING)
        try:
            self.receipt = submit_survey(
                self.user, self.survey, dict(self.answers), self.year
            )
        except AlreadyCompletedError as e:
            self.error = e
            self._move(SessionState.INELIGIBLE)
            raise
        except InsightsError as e:
            self.error = e
            self._move(SessionState.FAILED)
            logger.info(f"Survey session for survey {self.survey.pk} failed: {e}")
            raise
        self.error = None
        self._move(SessionState.COMPLETED)
        return self.receipt

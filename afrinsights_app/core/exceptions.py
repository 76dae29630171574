"""Domain errors raised by the verification, submission and insights services.

Views convert these into JSON error responses; none of them is fatal to the
process. ``retryable`` tells callers whether repeating the same request can
succeed without the user changing anything.
"""


class InsightsError(Exception):
    """Base class for all domain errors."""

    code = "error"
    retryable = False


class AlreadyCompletedError(InsightsError):
    """Raised when a user has already answered a survey in the given year."""

    code = "already_completed"

    def __init__(self, message: str = "", last_completed_year: int | None = None):
        super().__init__(
            message or "This survey has already been completed this year."
        )
        self.last_completed_year = last_completed_year


class InvalidAnswerError(InsightsError):
    """Raised when an answer is not one of its question's declared options."""

    code = "invalid_answer"


class VerificationMismatchError(InsightsError):
    """Raised when a confirmation code does not match the latest issued code."""

    code = "verification_mismatch"


class PhoneFormatError(InsightsError):
    """Raised when a phone number lacks its country's calling code prefix."""

    code = "phone_format"


class UnsupportedCountryError(InsightsError):
    """Raised for countries outside the supported set."""

    code = "unsupported_country"


class VerificationRequiredError(InsightsError):
    """Raised when a verified identity is needed before taking a survey."""

    code = "verification_required"


class StoreUnavailableError(InsightsError):
    """Raised when the database cannot complete a read or write."""

    code = "store_unavailable"
    retryable = True


class NarrativeUnavailableError(StoreUnavailableError):
    """Raised when the text generation service is disabled or failing."""

    code = "narrative_unavailable"


class InvalidSessionTransition(InsightsError):
    """Raised when a survey session is driven through an illegal transition."""

    code = "invalid_session_state"

"""
Identity verification service.

A user proves their identity by declaring name, country and phone number,
then confirming a one-time code issued for that declaration. SMS delivery is
outside this service: the code is logged at DEBUG level and, in demo mode,
echoed back by the API.
"""

import logging
import re
import secrets

from django.conf import settings
from django.db import DatabaseError

from afrinsights_app.core.countries import calling_code
from afrinsights_app.core.exceptions import (
    PhoneFormatError,
    StoreUnavailableError,
    UnsupportedCountryError,
    VerificationMismatchError,
)
from afrinsights_app.core.models import UserVerification

logger = logging.getLogger(__name__)

_PHONE_SEPARATORS = re.compile(r"[\s\-().]")


def normalise_phone_number(phone_number: str) -> str:
    """Strip spaces, hyphens, dots and brackets from a phone number."""
    return _PHONE_SEPARATORS.sub("", phone_number or "")


def validate_phone_number(country: str, phone_number: str) -> str:
    """
    Check that a phone number belongs to the declared country.

    Args:
        country: One of the supported country names
        phone_number: Phone number as typed by the user

    Returns:
        The normalised phone number

    Raises:
        UnsupportedCountryError: If the country is not supported
        PhoneFormatError: If the number does not start with the country's
            calling code or has no digits after it
    """
    code = calling_code(country)
    if code is None:
        raise UnsupportedCountryError(f"{country!r} is not a supported country")

    normalised = normalise_phone_number(phone_number)
    if not normalised.startswith(code):
        raise PhoneFormatError(f"Phone number must start with {code} for {country}")

    subscriber = normalised[len(code) :]
    if not subscriber.isdigit():
        raise PhoneFormatError(
            f"Phone number must contain digits after the {code} prefix"
        )
    return normalised


def generate_code(length: int | None = None) -> str:
    """Generate a numeric one-time code with no leading zero."""
    length = length or settings.VERIFICATION_CODE_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def start_verification(
    user,
    first_name: str,
    last_name: str,
    phone_number: str,
    country: str,
) -> UserVerification:
    """Validate the declaration and issue a new one-time code for it."""
    phone = validate_phone_number(country, phone_number)
    code = generate_code()

    try:
        verification = UserVerification.objects.create(
            user=user,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone_number=phone,
            country=country,
            verification_code=code,
        )
    except DatabaseError as e:
        logger.error(f"Failed to store verification for user {user.pk}: {e}")
        raise StoreUnavailableError("Could not start verification") from e

    logger.info(f"Verification {verification.pk} issued for user {user.pk} ({country})")
    logger.debug(f"Verification code for {verification.pk}: {code}")
    return verification


def latest_verification(user) -> UserVerification | None:
    """Return the user's most recent verification record, verified or not."""
    return (
        UserVerification.objects.filter(user=user).order_by("-created_at").first()
    )


def confirm_verification(user, code: str) -> UserVerification:
    """
    Confirm the user's most recent verification record.

    Only the latest record is considered; a code issued for an earlier record
    is rejected even if it was correct at the time.

    Raises:
        VerificationMismatchError: If there is no record or the code differs
    """
    try:
        verification = latest_verification(user)
    except DatabaseError as e:
        logger.error(f"Failed to load verification for user {user.pk}: {e}")
        raise StoreUnavailableError("Could not load verification") from e

    if verification is None:
        raise VerificationMismatchError("No verification record found")

    supplied = (code or "").strip()
    if not secrets.compare_digest(
        supplied.encode(), verification.verification_code.encode()
    ):
        logger.info(f"Verification code mismatch for user {user.pk}")
        raise VerificationMismatchError("Invalid verification code")

    if not verification.is_verified:
        try:
            verification.mark_verified()
        except DatabaseError as e:
            logger.error(f"Failed to confirm verification {verification.pk}: {e}")
            raise StoreUnavailableError("Could not confirm verification") from e
        logger.info(f"Verification {verification.pk} confirmed for user {user.pk}")
    return verification


def get_current_verification(user) -> UserVerification | None:
    """Return the user's most recent verified record, if any."""
    return (
        UserVerification.objects.filter(user=user, is_verified=True)
        .order_by("-created_at")
        .first()
    )

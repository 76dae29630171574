"""Shared fixtures for app-level and workflow tests."""

from django.contrib.auth import get_user_model
import pytest
from rest_framework.test import APIClient

from afrinsights_app.core.models import UserVerification
from afrinsights_app.surveys.models import Survey
from afrinsights_app.surveys.questions import Question

User = get_user_model()

TEST_PASSWORD = "x"


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(username="respondent", password=TEST_PASSWORD)


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="other", password=TEST_PASSWORD)


@pytest.fixture
def verified_user(db):
    """User with a confirmed Nigerian verification."""
    user = User.objects.create_user(username="verified", password=TEST_PASSWORD)
    verification = UserVerification.objects.create(
        user=user,
        first_name="Ada",
        last_name="Obi",
        phone_number="+2348012345678",
        country="Nigeria",
        verification_code="123456",
    )
    verification.mark_verified()
    return user


@pytest.fixture
def survey(db):
    """Active two-question Yes/No survey."""
    survey = Survey(
        title="Mobile Money",
        category=Survey.Category.ECONOMIC,
    )
    survey.set_questions(
        [
            Question("q1", "Do you use mobile money?", ("Yes", "No")),
            Question("q2", "Do you save with a bank?", ("Yes", "No")),
        ]
    )
    survey.save()
    return survey

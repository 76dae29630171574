"""Tests for the identity verification endpoints."""

import pytest

from afrinsights_app.core.models import UserVerification


@pytest.mark.django_db
class TestVerificationAPI:
    payload = {
        "first_name": "Ada",
        "last_name": "Obi",
        "phone_number": "+234 801 234 567",
        "country": "Nigeria",
    }

    def test_status_unverified(self, api_client, user):
        api_client.force_authenticate(user=user)

        response = api_client.get("/api/verification/")

        assert response.status_code == 200
        assert response.json() == {
            "verified": False,
            "pending": False,
            "verification": None,
        }

    def test_start_and_confirm(self, api_client, user, settings):
        settings.VERIFICATION_EXPOSE_CODE = True
        api_client.force_authenticate(user=user)

        started = api_client.post(
            "/api/verification/start/", self.payload, format="json"
        )
        assert started.status_code == 201
        data = started.json()
        assert data["phone_number"] == "+234801234567"
        assert data["is_verified"] is False

        pending = api_client.get("/api/verification/").json()
        assert pending["pending"] is True
        assert pending["verified"] is False

        confirmed = api_client.post(
            "/api/verification/confirm/",
            {"code": data["demo_code"]},
            format="json",
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["verification"]["is_verified"] is True

        current = api_client.get("/api/verification/").json()
        assert current["verified"] is True
        assert current["verification"]["country"] == "Nigeria"

    def test_code_hidden_outside_demo_mode(self, api_client, user, settings):
        settings.VERIFICATION_EXPOSE_CODE = False
        api_client.force_authenticate(user=user)

        response = api_client.post(
            "/api/verification/start/", self.payload, format="json"
        )

        assert response.status_code == 201
        assert "demo_code" not in response.json()

    def test_phone_prefix_mismatch(self, api_client, user):
        api_client.force_authenticate(user=user)

        response = api_client.post(
            "/api/verification/start/",
            {**self.payload, "phone_number": "0234555"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["error"] == "phone_format"
        assert not UserVerification.objects.exists()

    def test_unsupported_country(self, api_client, user):
        api_client.force_authenticate(user=user)

        response = api_client.post(
            "/api/verification/start/",
            {**self.payload, "country": "Atlantis"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["error"] == "unsupported_country"

    def test_missing_fields(self, api_client, user):
        api_client.force_authenticate(user=user)

        response = api_client.post(
            "/api/verification/start/", {"first_name": "Ada"}, format="json"
        )

        assert response.status_code == 400
        assert "phone_number" in response.json()

    def test_wrong_code(self, api_client, user):
        api_client.force_authenticate(user=user)
        api_client.post("/api/verification/start/", self.payload, format="json")

        response = api_client.post(
            "/api/verification/confirm/", {"code": "000000"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["error"] == "verification_mismatch"

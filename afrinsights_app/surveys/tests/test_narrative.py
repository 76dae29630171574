"""
Tests for AI insight narratives. Outbound HTTP is mocked.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from afrinsights_app.core.exceptions import NarrativeUnavailableError
from afrinsights_app.surveys.models import InsightNarrative
from afrinsights_app.surveys.services.insights import empty_dashboard
from afrinsights_app.surveys.services.narrative import (
    NarrativeClient,
    build_prompt,
    generate_narrative,
)


@pytest.fixture
def llm_settings(settings):
    settings.LLM_ENABLED = True
    settings.LLM_URL = "https://llm.example.com/v1/chat/completions"
    settings.LLM_API_KEY = "test-key"
    settings.LLM_AUTH_TYPE = "bearer"
    settings.LLM_MODEL = "test-model"
    return settings


def completion(text):
    response = MagicMock()
    response.json.return_value = {"choices": [{"message": {"content": text}}]}
    response.raise_for_status.return_value = None
    return response


def sample_dashboard():
    dashboard = empty_dashboard()
    dashboard["summary"] = {
        "total_responses": 3,
        "participants": 2,
        "countries": 1,
        "responses_per_participant": 1.5,
    }
    dashboard["countries"] = [{"country": "Kenya", "count": 3}]
    dashboard["insights"] = [
        {
            "question": "Do you use mobile money?",
            "survey_title": "Mobile Money",
            "results": [
                {"option": "Yes", "count": 2, "percentage": 66.7},
                {"option": "No", "count": 1, "percentage": 33.3},
            ],
        }
    ]
    return dashboard


class TestNarrativeClient:
    def test_bearer_auth_and_payload(self, llm_settings):
        with patch("requests.post", return_value=completion(" Summary ")) as post:
            text = NarrativeClient().generate_text("Hello", max_tokens=50)

        assert text == "Summary"
        kwargs = post.call_args.kwargs
        assert post.call_args.args[0] == llm_settings.LLM_URL
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["json"]["model"] == "test-model"
        assert kwargs["json"]["max_tokens"] == 50
        assert kwargs["json"]["messages"][-1] == {"role": "user", "content": "Hello"}

    def test_apim_auth(self, llm_settings):
        llm_settings.LLM_AUTH_TYPE = "apim"
        with patch("requests.post", return_value=completion("ok")) as post:
            NarrativeClient().generate_text("Hello")

        headers = post.call_args.kwargs["headers"]
        assert headers["Ocp-Apim-Subscription-Key"] == "test-key"
        assert "Authorization" not in headers

    def test_disabled(self, settings):
        settings.LLM_ENABLED = False
        with patch("requests.post") as post:
            with pytest.raises(NarrativeUnavailableError):
                NarrativeClient().generate_text("Hello")
        post.assert_not_called()

    def test_http_error(self, llm_settings):
        response = MagicMock()
        response.status_code = 500
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            response=response
        )
        with patch("requests.post", return_value=response):
            with pytest.raises(NarrativeUnavailableError) as exc_info:
                NarrativeClient().generate_text("Hello")
        assert exc_info.value.retryable is True

    def test_timeout(self, llm_settings):
        with patch("requests.post", side_effect=requests.exceptions.Timeout()):
            with pytest.raises(NarrativeUnavailableError):
                NarrativeClient().generate_text("Hello")

    def test_empty_choices(self, llm_settings):
        response = completion("")
        response.json.return_value = {"choices": []}
        with patch("requests.post", return_value=response):
            with pytest.raises(NarrativeUnavailableError):
                NarrativeClient().generate_text("Hello")


class TestBuildPrompt:
    def test_includes_figures(self):
        prompt = build_prompt(
            InsightNarrative.InsightType.EXECUTIVE_SUMMARY, sample_dashboard()
        )
        assert "executive summary" in prompt
        assert "Total responses: 3" in prompt
        assert "- Kenya: 3" in prompt
        assert "Do you use mobile money? (Yes 66.7%, No 33.3%)" in prompt


@pytest.mark.django_db
class TestGenerateNarrative:
    def test_persists_narrative(self, llm_settings, user):
        with patch("requests.post", return_value=completion("Mobile money grows.")):
            narrative = generate_narrative(
                user, "trend_analysis", dashboard=sample_dashboard()
            )

        narrative.refresh_from_db()
        assert narrative.user == user
        assert narrative.title == "Emerging Trends Analysis"
        assert narrative.content == "Mobile money grows."
        assert narrative.data_sources == ["Mobile Money"]
        assert narrative.model_name == "test-model"

    def test_disabled_stores_nothing(self, settings, user):
        settings.LLM_ENABLED = False
        with pytest.raises(NarrativeUnavailableError):
            generate_narrative(user, "prediction", dashboard=sample_dashboard())
        assert not InsightNarrative.objects.exists()

    def test_unknown_type(self, llm_settings, user):
        with pytest.raises(ValueError):
            generate_narrative(user, "horoscope", dashboard=sample_dashboard())

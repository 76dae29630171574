"""AI-written narratives over aggregated survey data.

The text generation service is any OpenAI-compatible chat completions
endpoint. It is enabled only when both ``LLM_URL`` and ``LLM_API_KEY`` are set.
"""

import logging
from typing import Optional

from django.conf import settings
import requests

from afrinsights_app.core.exceptions import NarrativeUnavailableError
from afrinsights_app.surveys.models import InsightNarrative

from .insights import load_dashboard

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a market research analyst writing for business readers. "
    "Base every statement on the survey figures provided. Do not invent "
    "numbers. Keep the answer under 400 words."
)

INSTRUCTIONS = {
    InsightNarrative.InsightType.EXECUTIVE_SUMMARY: (
        "Write an executive summary of the key findings."
    ),
    InsightNarrative.InsightType.PREDICTION: (
        "Describe the likely direction of these markets over the next year."
    ),
    InsightNarrative.InsightType.TREND_ANALYSIS: (
        "Identify the emerging trends in these responses."
    ),
    InsightNarrative.InsightType.MARKET_OPPORTUNITY: (
        "List the market opportunities these responses suggest."
    ),
}


class NarrativeClient:
    """Client for the text generation service.

    Supports two authentication styles:
    - ``bearer``: ``Authorization: Bearer <key>``
    - ``apim``: ``Ocp-Apim-Subscription-Key: <key>``
    """

    def __init__(self):
        self.url = settings.LLM_URL
        self.api_key = settings.LLM_API_KEY
        self.auth_type = settings.LLM_AUTH_TYPE
        self.model = settings.LLM_MODEL
        self.timeout = settings.LLM_TIMEOUT

        if not settings.LLM_ENABLED:
            logger.warning("Text generation service is not configured")

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.auth_type == "apim":
            headers["Ocp-Apim-Subscription-Key"] = self.api_key
        else:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def generate_text(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate text for a prompt.

        Args:
            prompt: User prompt
            model: Model name, defaults to ``LLM_MODEL``
            max_tokens: Completion limit, defaults to ``LLM_MAX_TOKENS``

        Returns:
            The generated text

        Raises:
            NarrativeUnavailableError: If the service is disabled, fails or
                returns no text
        """
        if not settings.LLM_ENABLED:
            raise NarrativeUnavailableError("AI narratives are not available")

        payload = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens or settings.LLM_MAX_TOKENS,
            "temperature": settings.LLM_TEMPERATURE,
        }

        try:
            response = requests.post(
                self.url,
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            logger.error(f"Text generation error: {e.response.status_code}")
            raise NarrativeUnavailableError(
                f"Text generation failed: {e.response.status_code}"
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Text generation request exception: {e}")
            raise NarrativeUnavailableError("Text generation failed") from e
        except ValueError as e:
            logger.error(f"Text generation returned invalid JSON: {e}")
            raise NarrativeUnavailableError("Text generation failed") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Text generation response had no choices")
            raise NarrativeUnavailableError("Text generation returned no text") from e

        if not content or not content.strip():
            raise NarrativeUnavailableError("Text generation returned no text")
        return content.strip()


def build_prompt(insight_type: str, dashboard: dict) -> str:
    """Summarise dashboard figures into a prompt for ``insight_type``."""
    summary = dashboard["summary"]
    lines = [
        INSTRUCTIONS[InsightNarrative.InsightType(insight_type)],
        "",
        f"Total responses: {summary['total_responses']}",
        f"Participants: {summary['participants']}",
        f"Countries: {summary['countries']}",
    ]

    if dashboard["countries"]:
        lines.append("Top countries:")
        lines.extend(
            f"- {row['country']}: {row['count']}" for row in dashboard["countries"]
        )

    if dashboard["categories"]:
        lines.append("Responses by category:")
        lines.extend(
            f"- {row['category']}: {row['responses']}"
            for row in dashboard["categories"]
        )

    if dashboard["insights"]:
        lines.append("Question results:")
        for insight in dashboard["insights"]:
            results = ", ".join(
                f"{result['option']} {result['percentage']}%"
                for result in insight["results"]
            )
            lines.append(f"- {insight['question']} ({results})")

    return "\n".join(lines)


def generate_narrative(
    user, insight_type: str, dashboard: Optional[dict] = None
) -> InsightNarrative:
    """
    Generate and store a narrative for the current dashboard data.

    Args:
        user: Requesting user, recorded as the narrative's owner
        insight_type: One of ``InsightNarrative.InsightType``
        dashboard: Dashboard data, loaded unfiltered if not given

    Returns:
        The saved InsightNarrative

    Raises:
        NarrativeUnavailableError: If text generation is disabled or fails
        ValueError: For an unknown insight type
    """
    if insight_type not in InsightNarrative.InsightType.values:
        raise ValueError(f"Unknown insight type {insight_type!r}")
    if not settings.LLM_ENABLED:
        raise NarrativeUnavailableError("AI narratives are not available")

    dashboard = dashboard if dashboard is not None else load_dashboard()
    client = NarrativeClient()
    content = client.generate_text(build_prompt(insight_type, dashboard))

    narrative = InsightNarrative.objects.create(
        user=user,
        insight_type=insight_type,
        title=InsightNarrative.InsightType(insight_type).label,
        content=content,
        data_sources=sorted({row["survey_title"] for row in dashboard["insights"]}),
        model_name=client.model,
    )
    logger.info(
        f"Generated {insight_type} narrative {narrative.pk} for user {user.pk}"
    )
    return narrative

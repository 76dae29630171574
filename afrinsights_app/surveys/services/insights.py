"""
Insight aggregation for survey dashboards.

The functions at the top of this module are pure: they take response records
already loaded in memory (SurveyResponse instances or anything with the same
attributes) and return plain counts and percentages. The loaders at the bottom
read a capped number of records from the database and never raise; a failed
load is logged and produces an empty aggregate.
"""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from afrinsights_app.surveys.models import Survey, SurveyResponse

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

# Legacy "no filter" values sent by older dashboard clients
ALL_COUNTRIES = "all"
ALL_PERIODS = 0

# Rolling windows offered by the dashboard time range picker
TIME_RANGES = {"7d": 7, "30d": 30, "90d": 90, "all": None}


@dataclass
class OptionResult:
    """Count and share of one answer option."""

    option: str
    count: int
    percentage: float | int


@dataclass
class QuestionInsight:
    """Distribution of answers for a single question."""

    question_id: str
    question: str
    question_index: int
    total_responses: int
    results: list[OptionResult] = field(default_factory=list)


@dataclass
class SurveyInsight:
    """Question insights for one survey."""

    survey_id: int
    survey_title: str
    category: str
    question_insights: list[QuestionInsight] = field(default_factory=list)


@dataclass(frozen=True)
class InsightFilter:
    """
    Optional filters for response records.

    ``country``, ``year`` and ``month`` are equality filters. ``days`` keeps
    records created in the last ``days`` days. ``None`` means "no filter".
    Use ``coerce`` for values coming from a query string or an older client,
    where ``'all'`` and ``0`` meant the same thing.
    """

    country: str | None = None
    year: int | None = None
    month: int | None = None
    days: int | None = None

    @classmethod
    def coerce(
        cls, value: "InsightFilter | Mapping[str, Any] | None"
    ) -> "InsightFilter":
        if value is None:
            return cls()
        if isinstance(value, InsightFilter):
            return value

        country = value.get("country")
        if country is not None:
            country = str(country).strip()
            if not country or country.lower() == ALL_COUNTRIES:
                country = None

        return cls(
            country=country,
            year=_optional_period(value.get("year"), "year"),
            month=_optional_period(value.get("month"), "month", upper=12),
            days=_optional_days(value.get("days")),
        )

    @property
    def is_empty(self) -> bool:
        return (
            self.country is None
            and self.year is None
            and self.month is None
            and self.days is None
        )

    def cutoff(self, now: datetime | None = None) -> datetime | None:
        """Earliest creation time kept by ``days``, or None."""
        if self.days is None:
            return None
        return (now or timezone.now()) - timedelta(days=self.days)


def _optional_period(raw: Any, name: str, upper: int | None = None) -> int | None:
    if raw in (None, ""):
        return None
    try:
        number = int(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a whole number") from e
    if number == ALL_PERIODS:
        return None
    if number < 0 or (upper is not None and number > upper):
        raise ValueError(f"{name} is out of range")
    return number


def _optional_days(raw: Any) -> int | None:
    # Accepts the picker's "7d"/"30d"/"90d"/"all" as well as plain numbers
    if isinstance(raw, str):
        key = raw.strip().lower()
        if key in TIME_RANGES:
            return TIME_RANGES[key]
        raw = key.removesuffix("d")
    return _optional_period(raw, "days")


def percentage(count: int, total: int, places: int = 0) -> float | int:
    """Share of ``count`` in ``total`` as a percentage, rounded half up.

    Returns an int when ``places`` is 0 and 0 when ``total`` is 0.
    """
    if total <= 0:
        return 0
    exact = Decimal(count) * 100 / Decimal(total)
    quantum = Decimal(1).scaleb(-places)
    rounded = exact.quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def filter_responses(
    responses: Iterable, filters=None, now: datetime | None = None
) -> list:
    """Apply country, response year, creation month and rolling window filters.

    ``now`` anchors the ``days`` window and defaults to the current time.
    """
    criteria = InsightFilter.coerce(filters)
    cutoff = criteria.cutoff(now)
    matched = []
    for response in responses:
        if criteria.country is not None and response.country != criteria.country:
            continue
        if criteria.year is not None and response.response_year != criteria.year:
            continue
        if criteria.month is not None and response.created_at.month != criteria.month:
            continue
        if cutoff is not None and response.created_at < cutoff:
            continue
        matched.append(response)
    return matched


def aggregate_by_question(
    responses: Iterable, survey: Survey, places: int = 0
) -> list[QuestionInsight]:
    """
    Tally answers to each of a survey's questions.

    Only responses for ``survey`` whose answer is one of the question's
    declared options are counted; anything else is ignored. Options are
    ordered by count, most common first, with ties kept in declaration order.

    Args:
        responses: Response records (any survey)
        survey: Survey whose questions define the options
        places: Decimal places for percentages (0 gives ints)

    Returns:
        One QuestionInsight per question, in question order
    """
    by_index: dict[int, Counter] = {}
    for response in responses:
        if response.survey_id != survey.pk:
            continue
        by_index.setdefault(response.question_index, Counter())[response.answer] += 1

    insights = []
    for idx, question in enumerate(survey.get_questions()):
        answers = by_index.get(idx, Counter())
        counts = [(option, answers.get(option, 0)) for option in question.options]
        total = sum(count for _, count in counts)

        results = [
            OptionResult(
                option=option,
                count=count,
                percentage=percentage(count, total, places),
            )
            for option, count in counts
        ]
        # sorted() is stable, so equal counts keep declaration order
        results = sorted(results, key=lambda result: -result.count)

        insights.append(
            QuestionInsight(
                question_id=question.id,
                question=question.text,
                question_index=idx,
                total_responses=total,
                results=results,
            )
        )
    return insights


def aggregate_by_country(responses: Iterable, limit: int | None = None) -> list[dict]:
    """Count responses per country, most responses first.

    Responses without a country are left out.
    """
    counter = Counter(response.country for response in responses if response.country)
    return [
        {"country": country, "count": count}
        for country, count in counter.most_common(limit)
    ]


def aggregate_by_time_bucket(
    responses: Iterable, granularity: str = "month"
) -> list[dict]:
    """
    Count responses per time bucket.

    - ``year``: by response year, ascending, only years with data
    - ``month``: by calendar month of creation, always 12 entries Jan..Dec
    - ``day``: by creation date, ascending, only days with data
    """
    if granularity == "year":
        counter = Counter(response.response_year for response in responses)
        return [
            {"bucket": year, "count": counter[year]} for year in sorted(counter)
        ]

    if granularity == "month":
        counter = Counter(response.created_at.month for response in responses)
        return [
            {
                "bucket": month,
                "label": MONTH_NAMES[month - 1],
                "count": counter[month],
            }
            for month in range(1, 13)
        ]

    if granularity == "day":
        counter = Counter(response.created_at.date() for response in responses)
        return [
            {"bucket": day.isoformat(), "count": counter[day]}
            for day in sorted(counter)
        ]

    raise ValueError(f"Unknown granularity {granularity!r}")


def aggregate_by_category(
    responses: Iterable, surveys: Sequence[Survey]
) -> list[dict]:
    """
    Roll responses up by survey category.

    ``insights`` counts the distinct (survey, question) pairs that received
    at least one response. Responses for unknown surveys are skipped.
    """
    survey_by_id = {survey.pk: survey for survey in surveys}
    totals: Counter = Counter()
    questions: dict[str, set] = {}
    for response in responses:
        survey = survey_by_id.get(response.survey_id)
        if survey is None:
            continue
        totals[survey.category] += 1
        questions.setdefault(survey.category, set()).add(
            (response.survey_id, response.question_index)
        )

    return [
        {
            "category": category,
            "responses": count,
            "insights": len(questions[category]),
            "average": round(count / len(questions[category]), 1),
        }
        for category, count in totals.most_common()
    ]


def summarise_participation(responses: Sequence) -> dict:
    """Headline participation numbers for a set of responses."""
    participants = {response.user_id for response in responses}
    countries = {response.country for response in responses if response.country}
    total = len(responses)
    return {
        "total_responses": total,
        "participants": len(participants),
        "countries": len(countries),
        "responses_per_participant": (
            round(total / len(participants), 1) if participants else 0
        ),
    }


def available_years(responses: Iterable) -> list[int]:
    """Distinct response years, newest first."""
    return sorted({response.response_year for response in responses}, reverse=True)


def realtime_metrics(responses: Iterable, now: datetime | None = None) -> dict:
    """Responses created today and the countries they came from."""
    today = (now or timezone.now()).date()
    todays = [r for r in responses if r.created_at.date() == today]
    return {
        "today_responses": len(todays),
        "active_countries": len({r.country for r in todays if r.country}),
    }


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


def _recent_responses(
    filters: InsightFilter | None = None, now: datetime | None = None
) -> list[SurveyResponse]:
    queryset = SurveyResponse.objects.all()
    if filters is not None:
        if filters.country is not None:
            queryset = queryset.filter(country=filters.country)
        if filters.year is not None:
            queryset = queryset.filter(response_year=filters.year)
        if filters.days is not None:
            queryset = queryset.filter(created_at__gte=filters.cutoff(now))
    return list(queryset.order_by("-created_at")[: settings.INSIGHTS_MAX_RECORDS])


def load_survey_insights(places: int = 0) -> list[SurveyInsight]:
    """
    Per-question insights for every active survey.

    Returns an empty list if the database cannot be read.
    """
    try:
        surveys = list(Survey.objects.filter(is_active=True))
        responses = _recent_responses()
    except DatabaseError as e:
        logger.error(f"Failed to load survey insights: {e}")
        return []

    return [
        SurveyInsight(
            survey_id=survey.pk,
            survey_title=survey.title,
            category=survey.category,
            question_insights=aggregate_by_question(responses, survey, places),
        )
        for survey in surveys
    ]


def empty_dashboard(filters: InsightFilter | None = None) -> dict:
    filters = filters or InsightFilter()
    return {
        "filters": asdict(filters),
        "summary": summarise_participation([]),
        "available_years": [],
        "countries": [],
        "yearly_trends": [],
        "monthly_trends": aggregate_by_time_bucket([], "month"),
        "daily_trends": [],
        "categories": [],
        "insights": [],
        "realtime": realtime_metrics([]),
    }


def load_dashboard(filters=None, places: int = 1) -> dict:
    """
    Detailed dashboard data for the given filters.

    Country, year and the rolling ``days`` window narrow the records read
    from the database; month is applied in memory. Available years come from
    all records. Yearly trends ignore the year filter so the chart shows every
    year for the selected country. Monthly trends ignore the month filter so
    all twelve months stay comparable. ``realtime`` counts today's responses
    among those matching country, year and window.

    Returns the empty dashboard if the database cannot be read.
    """
    filters = InsightFilter.coerce(filters)
    now = timezone.now()
    try:
        surveys = list(Survey.objects.all())
        all_responses = _recent_responses()
        responses = _recent_responses(
            InsightFilter(
                country=filters.country, year=filters.year, days=filters.days
            ),
            now,
        )
        country_responses = _recent_responses(
            InsightFilter(country=filters.country, days=filters.days), now
        )
    except DatabaseError as e:
        logger.error(f"Failed to load insights dashboard: {e}")
        return empty_dashboard(filters)

    in_period = filter_responses(responses, InsightFilter(month=filters.month))

    insights = []
    for survey in surveys:
        for insight in aggregate_by_question(in_period, survey, places):
            if insight.total_responses == 0:
                continue
            row = asdict(insight)
            row.update(
                survey_id=survey.pk,
                survey_title=survey.title,
                category=survey.category,
            )
            insights.append(row)

    return {
        "filters": asdict(filters),
        "summary": summarise_participation(in_period),
        "available_years": available_years(all_responses),
        "countries": aggregate_by_country(
            in_period, limit=settings.INSIGHTS_TOP_COUNTRIES
        ),
        "yearly_trends": aggregate_by_time_bucket(country_responses, "year"),
        "monthly_trends": aggregate_by_time_bucket(responses, "month"),
        "daily_trends": aggregate_by_time_bucket(in_period, "day"),
        "categories": aggregate_by_category(in_period, surveys),
        "insights": insights,
        "realtime": realtime_metrics(responses, now),
    }

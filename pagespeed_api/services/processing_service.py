# pagespeed_api/services/processing_service.py
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from pagespeed_api.core.errors import BadUpstreamRequest, MalformedUpstreamPayload
from pagespeed_api.models import AnalysisReport, CoreWebVitals, MetricSample, Opportunity, Strategy

# Lighthouse audit id -> CoreWebVitals field
METRIC_AUDITS = {
    "first-contentful-paint": "first_contentful_paint",
    "largest-contentful-paint": "largest_contentful_paint",
    "speed-index": "speed_index",
    "total-blocking-time": "total_blocking_time",
    "cumulative-layout-shift": "cumulative_layout_shift",
}

OPPORTUNITY_THRESHOLD_MS = 100
MAX_OPPORTUNITIES = 5


def scale_score(score: float) -> int:
    """Scales a 0-1 Lighthouse score to 0-100, rounding half away from zero."""
    return int((Decimal(str(score)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def get_lighthouse_result(data: Any) -> Dict[str, Any]:
    """
    Returns the `lighthouseResult` object of a PageSpeed response.

    Raises:
        BadUpstreamRequest: If a 2xx body still carries an `error` envelope.
        MalformedUpstreamPayload: If the body is not an object or has no lighthouseResult.
    """
    if not isinstance(data, dict):
        raise MalformedUpstreamPayload("Invalid response from PageSpeed API: expected a JSON object.")

    if isinstance(data.get("error"), dict):
        error = data["error"]
        raise BadUpstreamRequest(
            f"Google API Error: {error.get('message', 'Unknown API error')}",
            details=error.get("errors"),
        )

    lighthouse_result = data.get("lighthouseResult")
    if not isinstance(lighthouse_result, dict):
        raise MalformedUpstreamPayload("Invalid response from PageSpeed API: 'lighthouseResult' not found.")
    return lighthouse_result


def extract_category_scores(lighthouse_result: Dict[str, Any]) -> Dict[str, int]:
    categories = lighthouse_result.get("categories") or {}
    scores = {}
    for category_id, category in categories.items():
        score = category.get("score") if isinstance(category, dict) else None
        # JSON true/false decode to bool, which is an int subclass
        if isinstance(score, (int, float)) and not isinstance(score, bool):
            scores[category_id] = scale_score(score)
    return scores


def extract_performance_score(data: Any) -> int:
    """
    Reads the overall performance score from a PageSpeed response.

    Args:
        data: The parsed JSON response from the API.

    Returns:
        The performance score as an integer between 0 and 100.
    """
    lighthouse_result = get_lighthouse_result(data)
    scores = extract_category_scores(lighthouse_result)
    if "performance" not in scores:
        raise MalformedUpstreamPayload("Invalid response from PageSpeed API: performance score not found.")
    return scores["performance"]


def _audit_details(audit: Any) -> Dict[str, Any]:
    if not isinstance(audit, dict):
        return {}
    details = audit.get("details")
    return details if isinstance(details, dict) else {}


def extract_key_metrics(audits: Dict[str, Any]) -> CoreWebVitals:
    """
    Extracts the five Core Web Vitals from the Lighthouse audits.

    Args:
        audits: The `lighthouseResult.audits` collection.

    Returns:
        A CoreWebVitals with one MetricSample per metric. Null scores stay null.
    """
    missing = [audit_id for audit_id in METRIC_AUDITS if not isinstance(audits.get(audit_id), dict)]
    if missing:
        raise MalformedUpstreamPayload(
            f"Invalid response from PageSpeed API: missing audits {', '.join(missing)}."
        )

    samples = {}
    for audit_id, field_name in METRIC_AUDITS.items():
        audit = audits[audit_id]
        samples[field_name] = MetricSample(
            score=audit.get("score"),
            display_value=audit.get("displayValue"),
            numeric_value=audit.get("numericValue"),
        )
    return CoreWebVitals(**samples)


def extract_opportunities(audits: Dict[str, Any]) -> List[Opportunity]:
    """
    Collects audits with more than 100ms of estimated savings, in upstream order.

    Filtering happens before truncation, so the result holds the first five
    qualifying audits.
    """
    opportunities = []
    for audit in audits.values():
        savings = _audit_details(audit).get("overallSavingsMs")
        if isinstance(savings, (int, float)) and savings > OPPORTUNITY_THRESHOLD_MS:
            opportunities.append(
                Opportunity(
                    title=audit.get("title"),
                    description=audit.get("description"),
                    savings_ms=savings,
                    display_value=audit.get("displayValue"),
                )
            )
    return opportunities[:MAX_OPPORTUNITIES]


def extract_screenshot(audits: Dict[str, Any]) -> Optional[str]:
    data = _audit_details(audits.get("final-screenshot")).get("data")
    return data if isinstance(data, str) else None


def extract_report(data: Any, url: str, strategy: Strategy) -> AnalysisReport:
    """
    Builds the caller-facing report from a PageSpeed Insights response.

    Args:
        data: The parsed JSON response from the API.
        url: The analyzed URL, as requested by the caller.
        strategy: The strategy the audit ran under.

    Returns:
        The AnalysisReport, stamped with the capture time.
    """
    lighthouse_result = get_lighthouse_result(data)
    audits = lighthouse_result.get("audits")
    if not isinstance(audits, dict):
        raise MalformedUpstreamPayload("Invalid response from PageSpeed API: 'audits' not found.")

    field_data = data.get("loadingExperience")

    try:
        return AnalysisReport(
            url=url,
            strategy=strategy,
            timestamp=datetime.now(timezone.utc),
            performance_score=extract_performance_score(data),
            category_scores=extract_category_scores(lighthouse_result),
            metrics=extract_key_metrics(audits),
            opportunities=extract_opportunities(audits),
            field_data=field_data if isinstance(field_data, dict) else None,
            screenshot=extract_screenshot(audits),
        )
    except ValidationError as e:
        # e.g. a metric score that is not a number
        raise MalformedUpstreamPayload(
            f"Invalid response from PageSpeed API: {e.error_count()} unexpected field value(s)."
        )

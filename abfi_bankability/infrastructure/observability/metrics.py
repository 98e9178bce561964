"""Prometheus metrics for monitoring assessment volume, rating mix and request latency"""

from prometheus_client import Counter, Histogram

# Assessment metrics
assessment_counter = Counter(
    "abfi_assessment_total",
    "Total bankability assessments calculated",
    ["rating"],  # AAA .. CCC
)

composite_score_histogram = Histogram(
    "abfi_composite_score",
    "Distribution of composite bankability scores",
    buckets=[50, 65, 70, 75, 80, 85, 90, 100],
)

validation_failure_counter = Counter(
    "abfi_assessment_validation_failures_total",
    "Assessment requests rejected by input validation",
    ["field"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_assessment(rating: str, composite_score: int) -> None:
    """Record rating distribution and composite score for a completed assessment"""
    assessment_counter.labels(rating=rating).inc()
    composite_score_histogram.observe(composite_score)


def record_validation_failure(field: str) -> None:
    # agreements[3].term_years -> agreements
    validation_failure_counter.labels(field=field.split("[")[0].split(".")[0]).inc()

"""
Core metrics collection for AgentReady using Prometheus
"""
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, Info, generate_latest

from core.config import settings
from core.logging import get_logger

# Create a global registry for the application
REGISTRY = CollectorRegistry()

app_info = Info("agentready_app", "AgentReady application information", registry=REGISTRY)

# Request metrics
request_count = Counter(
    "agentready_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

request_duration = Histogram(
    "agentready_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=REGISTRY,
)

# Plugin metrics
plugin_executions = Counter(
    "agentready_plugin_executions_total",
    "Plugin executions through the registry",
    ["plugin_kind", "plugin", "status"],
    registry=REGISTRY,
)

plugin_retries = Counter(
    "agentready_plugin_retries_total",
    "Failed plugin attempts that were retried or exhausted",
    ["plugin_kind", "plugin"],
    registry=REGISTRY,
)

cache_hits = Counter(
    "agentready_cache_hits_total",
    "Total cache hits",
    ["cache_type"],
    registry=REGISTRY,
)

cache_misses = Counter(
    "agentready_cache_misses_total",
    "Total cache misses",
    ["cache_type"],
    registry=REGISTRY,
)

# Assessment metrics
assessments_completed = Counter(
    "agentready_assessments_total",
    "Assessments returned by the scoring engine",
    ["assessment_type", "status"],
    registry=REGISTRY,
)

assessment_duration = Histogram(
    "agentready_assessment_duration_seconds",
    "Time taken to complete an assessment",
    ["assessment_type"],
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0),
    registry=REGISTRY,
)

secondary_failures = Counter(
    "agentready_secondary_analysis_failures_total",
    "Best-effort analyses that failed and were omitted",
    ["analysis"],
    registry=REGISTRY,
)

error_count = Counter(
    "agentready_errors_total",
    "Total number of errors",
    ["error_type", "domain"],
    registry=REGISTRY,
)


class MetricsCollector:
    """Helper class for collecting metrics"""

    def __init__(self):
        self.logger = get_logger("metrics")
        app_info.info({"version": settings.app_version, "environment": settings.environment})

    def track_request(self, method: str, endpoint: str, status: int, duration: float):
        """Track HTTP request metrics"""
        request_count.labels(method=method, endpoint=endpoint, status=str(status)).inc()
        request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def track_plugin_execution(self, plugin_kind: str, plugin: str, status: str = "success"):
        plugin_executions.labels(plugin_kind=plugin_kind, plugin=plugin, status=status).inc()

    def track_plugin_retry(self, plugin_kind: str, plugin: str):
        plugin_retries.labels(plugin_kind=plugin_kind, plugin=plugin).inc()

    def track_cache_hit(self, cache_type: str = "plugin"):
        cache_hits.labels(cache_type=cache_type).inc()

    def track_cache_miss(self, cache_type: str = "plugin"):
        cache_misses.labels(cache_type=cache_type).inc()

    def track_assessment(self, assessment_type: str, duration: float, status: str = "success"):
        """Track a finished assessment; status is success, degraded, fallback or error"""
        assessments_completed.labels(assessment_type=assessment_type, status=status).inc()
        assessment_duration.labels(assessment_type=assessment_type).observe(duration)

    def track_secondary_failure(self, analysis: str):
        secondary_failures.labels(analysis=analysis).inc()

    def track_error(self, error_type: str, domain: str):
        error_count.labels(error_type=error_type, domain=domain).inc()

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format"""
        return generate_latest(REGISTRY)


metrics = MetricsCollector()


def get_metrics_response():
    """Get metrics response for the /metrics endpoint"""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST

"""Prometheus metrics for the weather path."""

from prometheus_client import Counter, Histogram

weather_provider_latency_ms = Histogram(
    "weather_provider_latency_ms",
    "Weather provider call latency in milliseconds",
    ["call", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, 10000],
)

weather_provider_errors_total = Counter(
    "weather_provider_errors_total",
    "Total weather provider errors",
    ["call", "kind"],
)

weather_admission_rejections_total = Counter(
    "weather_admission_rejections_total",
    "Weather requests rejected by local admission control",
    ["scope"],
)

itinerary_weather_degraded_total = Counter(
    "itinerary_weather_degraded_total",
    "Itineraries served without weather",
    ["kind"],
)


class PrometheusWeatherMetrics:
    """Prometheus-based weather metrics implementation."""

    def record_latency(self, call: str, outcome: str, latency_ms: float) -> None:
        """Record provider call latency."""
        weather_provider_latency_ms.labels(call=call, outcome=outcome).observe(latency_ms)

    def inc_error(self, call: str, kind: str) -> None:
        """Increment provider error counter."""
        weather_provider_errors_total.labels(call=call, kind=kind).inc()

    def inc_admission_rejected(self, scope: str) -> None:
        """Increment local admission rejection counter."""
        weather_admission_rejections_total.labels(scope=scope).inc()

    def inc_degraded(self, kind: str) -> None:
        """Increment soft-degradation counter."""
        itinerary_weather_degraded_total.labels(kind=kind).inc()

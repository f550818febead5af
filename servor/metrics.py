"""
Prometheus metrics.

One Metrics object is created at startup and handed to the web app; it
lives until the process exits.
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    GCCollector,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from prometheus_client.exposition import CONTENT_TYPE_LATEST


class Metrics:
    def __init__(self, registry=None):
        self.registry = registry if registry is not None else CollectorRegistry()
        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)
        GCCollector(registry=self.registry)
        self.requests_total = Counter(
            "http_requests",
            "The total the number of HTTP requests.",
            ["code", "handler", "method"],
            registry=self.registry,
        )

    def observe(self, code: int, handler: str, method: str) -> None:
        self.requests_total.labels(code=str(code), handler=handler, method=method).inc()

    def expose(self):
        """Return (body, content type) for the /metrics endpoint."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST

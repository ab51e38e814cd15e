"""
Prometheus metrics for the site builder backend.

Tracks:
- HTTP requests by route and status
- Stripe API calls and errors
- Registrar API calls by registrar and outcome
- Webhook events received and processed
- Order status transitions
- Corrupt store documents
"""
from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Stripe API metrics
stripe_api_requests_total = Counter(
    "stripe_api_requests_total",
    "Total Stripe API requests",
    ["operation", "status"],  # operation: create_payment_intent, create_customer, etc.
)

stripe_api_errors_total = Counter(
    "stripe_api_errors_total",
    "Total Stripe API errors",
    ["error_type"],  # Stripe exception class name
)

stripe_api_duration_seconds = Histogram(
    "stripe_api_duration_seconds",
    "Stripe API call duration in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0),
)

# Registrar metrics
registrar_requests_total = Counter(
    "registrar_requests_total",
    "Total registrar API requests",
    ["registrar", "operation", "outcome"],  # outcome: ok, error
)

registrar_duration_seconds = Histogram(
    "registrar_duration_seconds",
    "Registrar API call duration in seconds",
    ["registrar", "operation"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0),
)

# Webhook metrics
webhook_events_received_total = Counter(
    "webhook_events_received_total",
    "Total webhook events received",
    ["event_type"],
)

webhook_events_processed_total = Counter(
    "webhook_events_processed_total",
    "Total webhook events processed",
    ["event_type", "status"],  # handled, ignored, failed
)

webhook_signature_failures_total = Counter(
    "webhook_signature_failures_total",
    "Total webhook deliveries rejected by signature verification",
)

webhook_processing_duration_seconds = Histogram(
    "webhook_processing_duration_seconds",
    "Webhook processing duration in seconds",
    ["event_type"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 15.0),
)

# Order metrics
order_transitions_total = Counter(
    "order_transitions_total",
    "Total order status transitions",
    ["from_status", "to_status"],
)

# Storage metrics
store_corrupt_documents_total = Counter(
    "store_corrupt_documents_total",
    "Store documents that failed to parse and were moved aside",
    ["store"],
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_http_request(
        method: str, path: str, status_code: int, duration_seconds: float
    ) -> None:
        """Record an HTTP request."""
        http_requests_total.labels(
            method=method, path=path, status_code=str(status_code)
        ).inc()
        http_request_duration_seconds.labels(method=method).observe(duration_seconds)

    @staticmethod
    def record_stripe_api_call(
        operation: str, status: str, duration_seconds: float
    ) -> None:
        """Record Stripe API call."""
        stripe_api_requests_total.labels(operation=operation, status=status).inc()
        stripe_api_duration_seconds.labels(operation=operation).observe(duration_seconds)

    @staticmethod
    def record_stripe_api_error(error_type: str) -> None:
        """Record Stripe API error."""
        stripe_api_errors_total.labels(error_type=error_type).inc()

    @staticmethod
    def record_registrar_call(
        registrar: str, operation: str, outcome: str, duration_seconds: float
    ) -> None:
        """Record a registrar API call."""
        registrar_requests_total.labels(
            registrar=registrar, operation=operation, outcome=outcome
        ).inc()
        registrar_duration_seconds.labels(registrar=registrar, operation=operation).observe(
            duration_seconds
        )

    @staticmethod
    def record_webhook_event(event_type: str, status: str, duration_seconds: float) -> None:
        """Record webhook event processing."""
        webhook_events_received_total.labels(event_type=event_type).inc()
        webhook_events_processed_total.labels(event_type=event_type, status=status).inc()
        webhook_processing_duration_seconds.labels(event_type=event_type).observe(
            duration_seconds
        )

    @staticmethod
    def record_webhook_signature_failure() -> None:
        webhook_signature_failures_total.inc()

    @staticmethod
    def record_order_transition(from_status: str, to_status: str) -> None:
        """Record an order status change."""
        order_transitions_total.labels(from_status=from_status, to_status=to_status).inc()

    @staticmethod
    def record_corrupt_document(store: str) -> None:
        store_corrupt_documents_total.labels(store=store).inc()


# Export singleton instance
metrics = MetricsCollector()

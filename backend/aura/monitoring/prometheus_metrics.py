"""
Prometheus metrics module for Aura.

Service operation timings come from the @measure_operation decorator;
verification outcomes and delivery channels are counted by the
verification service and the delivery router. Counters are for
dashboards and alerts only: labels carry channels and outcome reasons,
never phone numbers or codes.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "aura_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 10.0),
)

service_operations_total = Counter(
    "aura_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "aura_errors_total",
    "Total number of service errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

verification_deliveries_total = Counter(
    "aura_verification_deliveries_total",
    "Verification code deliveries by channel and outcome",
    ["channel", "outcome"],  # outcome: success | failure
    registry=REGISTRY,
)

verification_confirmations_total = Counter(
    "aura_verification_confirmations_total",
    "Verification code confirmations by internal result",
    ["result"],  # accepted | not_found | expired | mismatch | too_many_attempts | invalid_phone
    registry=REGISTRY,
)

delivery_configuration_missing_total = Counter(
    "aura_delivery_configuration_missing_total",
    "Send attempts that skipped a channel because it is not configured",
    ["channel"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'VerificationService')
            operation: Operation/method name (e.g., 'request_code')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_delivery(channel: str, ok: bool) -> None:
        """Count one delivery attempt on a channel."""
        outcome = "success" if ok else "failure"
        verification_deliveries_total.labels(channel=channel, outcome=outcome).inc()

    @staticmethod
    def record_confirmation(result: str) -> None:
        """Count one confirmation by its internal result."""
        verification_confirmations_total.labels(result=result).inc()

    @staticmethod
    def record_configuration_missing(channel: str) -> None:
        delivery_configuration_missing_total.labels(channel=channel).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()

"""OpenTelemetry tracing for the FleetOS services.

Spans are exported over OTLP/HTTP to a collector. Without
``configure_tracing`` the global no-op provider is used and the helpers
below cost next to nothing, which is how the tests run.
"""

import functools
from typing import Any, Callable, Dict, Optional, TypeVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Status, StatusCode

F = TypeVar("F", bound=Callable[..., Any])

_provider: Optional[TracerProvider] = None


def configure_tracing(
    service_name: str,
    otlp_endpoint: str = "http://otel-collector:4318/v1/traces",
    sampling_rate: float = 0.1,
    service_version: str = "0.1.0",
) -> TracerProvider:
    """Install a tracer provider exporting to an OTLP collector.

    Child spans follow the sampling decision of their parent; root spans
    are sampled at ``sampling_rate``.

    Args:
        service_name: Name of the service (e.g., "fleetos-notifier")
        otlp_endpoint: OTLP/HTTP traces endpoint
        sampling_rate: Sampling rate (0.0 to 1.0)
        service_version: Version reported on every span

    Returns:
        Configured TracerProvider
    """
    global _provider

    resource = Resource(
        attributes={
            "service.name": service_name,
            "service.namespace": "fleetos",
            "service.version": service_version,
        }
    )
    _provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(sampling_rate)),
    )
    _provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    trace.set_tracer_provider(_provider)
    return _provider


def shutdown_tracing() -> None:
    """Flush pending spans and stop the exporter, if tracing was configured."""
    global _provider
    if _provider is not None:
        _provider.shutdown()
        _provider = None


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


def trace_function(
    span_name: Optional[str] = None,
    attributes: Optional[Dict[str, Any]] = None,
    record_kwargs: tuple = ("user_id",),
) -> Callable[[F], F]:
    """Decorator wrapping a synchronous function in a span.

    Args:
        span_name: Span name (defaults to the function name)
        attributes: Static attributes set on every span
        record_kwargs: Keyword arguments copied onto the span when given

    Returns:
        Decorated function
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = get_tracer(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name) as span:
                span.set_attribute("code.function", func.__qualname__)
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                for key in record_kwargs:
                    if kwargs.get(key) is not None:
                        span.set_attribute(f"fleetos.{key}", str(kwargs[key]))

                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise

                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper  # type: ignore

    return decorator

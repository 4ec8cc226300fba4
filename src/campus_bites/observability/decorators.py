"""OpenTelemetry tracing decorators."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from campus_bites.exceptions import CampusBitesError

F = TypeVar("F", bound=Callable[..., Any])


def _record_failure(span: Any, error: Exception) -> None:
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))
    # Domain errors (denied, invalid transition) leave the span status unset
    if not isinstance(error, CampusBitesError):
        span.record_exception(error)
        span.set_status(Status(StatusCode.ERROR, str(error)))


def traced(span_name: str | None = None, service_name: str = "campus-bites-api") -> Callable[[F], F]:
    """Wrap a function (sync or async) in an OpenTelemetry span.

    Args:
        span_name: Name for the span (defaults to the function name)
        service_name: Value of the ``service.name`` span attribute

    Example:
        @traced("orders.update_status")
        async def update_status(self, context, order_id, status): ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def _start(span: Any) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            ) as span:
                _start(span)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            ) as span:
                _start(span)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator

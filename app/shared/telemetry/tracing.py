"""Span decorator for identity operations."""

import inspect
from collections.abc import Awaitable, Callable
from functools import wraps

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Only these keyword arguments are copied onto spans; everything else
# (passwords, codes, tokens, emails) stays out of exported traces.
_RECORDED_KWARGS = frozenset({"company_id", "identity_id", "limit", "purpose"})

_tracer = trace.get_tracer("keystone.identity")


def traced[**P, R](
    span_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Wrap a coroutine in a span named ``span_name``.

    The span is marked ERROR and carries the exception when the call
    raises; keyword arguments listed in ``_RECORDED_KWARGS`` become
    ``identity.<name>`` attributes.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"@traced supports coroutines only: {func.__qualname__}")

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with _tracer.start_as_current_span(span_name) as span:
                for key, value in kwargs.items():
                    if key in _RECORDED_KWARGS and value is not None:
                        span.set_attribute(f"identity.{key}", str(value))
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
                    span.record_exception(exc)
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def current_trace_id() -> str | None:
    """Hex trace id of the active span, if one is recording."""
    ctx = trace.get_current_span().get_span_context()
    return format(ctx.trace_id, "032x") if ctx.is_valid else None

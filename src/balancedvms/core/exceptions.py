from __future__ import annotations

import inspect
import uuid
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

import structlog

P = ParamSpec("P")
R = TypeVar("R")


class BaseApplicationException(Exception):
    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.error_id = f"ERR-{uuid.uuid4().hex[:12].upper()}"


class AuthenticationException(BaseApplicationException):
    pass


class ConfigurationException(BaseApplicationException):
    pass


class ConfigurationError(ConfigurationException):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class StepFailedError(BaseApplicationException):
    """A workflow step failed; the run cannot continue.

    ``str()`` renders as ``"<message>: <cause>"``, the single line printed
    before the process exits with status 1.
    """

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {describe_error(self.cause)}"


def describe_error(exc: BaseException) -> str:
    """One-line description of an SDK or local error."""
    message = getattr(exc, "message", None)
    text = message if isinstance(message, str) and message else str(exc)
    text = " ".join(text.split())
    return text or type(exc).__name__


def fatal_step(
    message: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Turn any failure of the wrapped step coroutine into a StepFailedError.

    A StepFailedError raised from inside is passed through unchanged so the
    innermost step keeps its message.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError("fatal_step only wraps coroutine functions")

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except StepFailedError:
                raise
            except Exception as exc:
                error = StepFailedError(message, cause=exc)
                structlog.get_logger(func.__module__).error(
                    "workflow.step.failed",
                    step=func.__name__,
                    error_id=error.error_id,
                    error_type=type(exc).__name__,
                    error_message=describe_error(exc),
                )
                raise error from exc

        return wrapper

    return decorator

"""
Unified error handling for kubesample.

The grouping and population engines never raise: every failure is built
as one of the exceptions below and collected into a list that the caller
inspects. CLI entry points convert the remaining hard failures into
exit codes.

Exit Codes:
- 0: Success
- 1: Warning (populated, but some entities or metrics failed)
- 10: Configuration error
- 11: Sink error (payload could not be delivered)
- 12: Nothing populated
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    WARNING = 1
    CONFIG_ERROR = 10
    SINK_ERROR = 11
    NOT_POPULATED = 12
    UNKNOWN_ERROR = 127


class KubeSampleError(Exception):
    """Base exception for kubesample errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(KubeSampleError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ParseError(KubeSampleError):
    """Raised when an exposition body cannot be fully parsed."""


class FetchError(KubeSampleError):
    """Raised when a group, entity or metric cannot be found in raw groups."""


class GroupEmptyError(KubeSampleError):
    """A declared object kind matched zero scraped series."""

    def __init__(self, group_label: str):
        super().__init__(f"no data found for {group_label} object", {"group": group_label})
        self.group_label = group_label


class LabelMissingError(KubeSampleError):
    """A resolver could not find a required label or anchor metric."""


class ShapeMismatchError(KubeSampleError):
    """A raw or fetched value did not have the expected shape or type."""


class EntitySkippedError(KubeSampleError):
    """A source deliberately does not report an entity; another source covers it."""


class GroupNotASliceError(ShapeMismatchError):
    """The split-by-label source metric is not a list of series."""

    def __init__(self, group_label: str, metric_key: str):
        super().__init__(
            f"group {group_label!r} key {metric_key!r}: group requires a slice of metrics",
            {"group": group_label, "metric": metric_key},
        )


class MetricWriteError(ShapeMismatchError):
    """A metric set rejected a value for the declared source type."""


class SinkError(KubeSampleError):
    """The entity builder or the payload transport rejected an operation."""

    exit_code = ExitCode.SINK_ERROR


class PopulateError(KubeSampleError):
    """Wraps a failure that happened while populating one entity."""

    def __init__(
        self,
        entity_id: str,
        err: Exception,
        *,
        group_label: str | None = None,
        metric_name: str | None = None,
    ):
        details: dict[str, Any] = {"entity_id": entity_id}
        if group_label is not None:
            details["group"] = group_label
        if metric_name is not None:
            details["metric"] = metric_name
        if metric_name is not None:
            message = f"error populating metric {metric_name!r} for entity ID {entity_id!r}: {err}"
        else:
            message = f"error populating entity ID {entity_id!r}: {err}"
        super().__init__(message, details)
        self.entity_id = entity_id
        self.err = err
        self.group_label = group_label
        self.metric_name = metric_name


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - KubeSampleError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except KubeSampleError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: KubeSampleError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg

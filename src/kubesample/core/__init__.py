"""Core modules for kubesample - centralized error definitions."""

from kubesample.core.errors import (
    ConfigurationError,
    EntitySkippedError,
    ExitCode,
    FetchError,
    GroupEmptyError,
    GroupNotASliceError,
    KubeSampleError,
    LabelMissingError,
    MetricWriteError,
    ParseError,
    PopulateError,
    ShapeMismatchError,
    SinkError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "KubeSampleError",
    "ConfigurationError",
    "ParseError",
    "FetchError",
    "GroupEmptyError",
    "LabelMissingError",
    "ShapeMismatchError",
    "EntitySkippedError",
    "GroupNotASliceError",
    "MetricWriteError",
    "SinkError",
    "PopulateError",
    "main_with_error_handling",
    "format_error_message",
]

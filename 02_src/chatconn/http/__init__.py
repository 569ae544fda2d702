"""HTTP request execution module."""

from .executor import (
    TRANSIENT_ERRORS,
    UNBOUNDED,
    IRequestExecutor,
    RequestExecutor,
    RetryPolicy,
    Sleep,
)

__all__ = [
    "IRequestExecutor",
    "RequestExecutor",
    "RetryPolicy",
    "Sleep",
    "TRANSIENT_ERRORS",
    "UNBOUNDED",
]

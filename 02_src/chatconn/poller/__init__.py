"""Incremental poller module."""

from .poller import IIncrementalPoller, IncrementalPoller

__all__ = ["IIncrementalPoller", "IncrementalPoller"]

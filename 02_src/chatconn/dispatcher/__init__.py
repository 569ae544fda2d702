"""Outbound dispatcher module."""

from .dispatcher import IOutboundDispatcher, OutboundDispatcher

__all__ = ["IOutboundDispatcher", "OutboundDispatcher"]

"""Exporter lifecycle management."""

from .inflight import InFlightTracker, LifecycleState

__all__ = ["InFlightTracker", "LifecycleState"]

"""Timeline construction."""

from .builder import TimelineBuilder, trajectory_direction

__all__ = ["TimelineBuilder", "trajectory_direction"]

"""Estado de seguimiento por sesión y estimación de fase por movimiento."""

from .motion_tracker import MotionTracker, PhaseEstimate
from .tracking_state import TrackingState

__all__ = ["MotionTracker", "PhaseEstimate", "TrackingState"]

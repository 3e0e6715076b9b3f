"""Exportaciones principales de la etapa de entrada de pose."""

from .geometry import angle_abc_deg, angle_at, is_degenerate, midpoint
from .joint_resolver import (
    JOINT_FALLBACKS,
    ResolvedJoints,
    Unresolved,
    count_visible,
    pick_side,
    resolve,
)
from .types import Keypoint, KeypointSnapshot

__all__ = [
    "JOINT_FALLBACKS",
    "Keypoint",
    "KeypointSnapshot",
    "ResolvedJoints",
    "Unresolved",
    "angle_abc_deg",
    "angle_at",
    "count_visible",
    "is_degenerate",
    "midpoint",
    "pick_side",
    "resolve",
]

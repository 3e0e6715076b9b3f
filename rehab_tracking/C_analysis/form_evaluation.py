"""Comprobaciones de postura sobre una instantánea de keypoints.

Son tres reglas geométricas independientes del ejercicio (alineación de
rodillas, tronco y profundidad). Solo se evalúan cuando todas las
articulaciones que necesitan superan ``min_confidence``; una comprobación sin
datos no se considera fallida.

Limitación conocida: las reglas están pensadas para una sentadilla frontal y
se aplican igual a cualquier ejercicio.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from rehab_tracking.A_pose_input.geometry import midpoint
from rehab_tracking.A_pose_input.types import KeypointSnapshot
from rehab_tracking.config import models
from rehab_tracking.config.constants import (
    FEEDBACK_GOOD_FORM,
    LEFT_ANKLE,
    LEFT_HIP,
    LEFT_KNEE,
    LEFT_SHOULDER,
    RIGHT_ANKLE,
    RIGHT_HIP,
    RIGHT_KNEE,
    RIGHT_SHOULDER,
)
from rehab_tracking.core.types import FormQuality

logger = logging.getLogger(__name__)

CHECK_KNEE_ALIGNMENT = "knee_alignment"
CHECK_TRUNK = "trunk_posture"
CHECK_DEPTH = "depth"

FORM_CHECKS = (CHECK_KNEE_ALIGNMENT, CHECK_TRUNK, CHECK_DEPTH)

_MESSAGES = {
    CHECK_KNEE_ALIGNMENT: "Keep your knees aligned over your toes",
    CHECK_TRUNK: "Keep your back straight and chest up",
    CHECK_DEPTH: "Go deeper - thighs should be parallel to floor",
}


@dataclass(frozen=True)
class FormFlag:
    """Comprobación fallida con su severidad y el mensaje para el paciente."""

    check: str
    message: str
    severity: FormQuality
    value: float


@dataclass(frozen=True)
class FormVerdict:
    """Resultado agregado de las comprobaciones de un fotograma."""

    quality: FormQuality = FormQuality.GOOD
    suggestion: str = FEEDBACK_GOOD_FORM
    flags: tuple[FormFlag, ...] = field(default_factory=tuple)

    @property
    def is_good(self) -> bool:
        return self.quality is FormQuality.GOOD

    @property
    def needs_attention(self) -> bool:
        return self.quality is FormQuality.NEEDS_ATTENTION

    def flag_names(self) -> tuple[str, ...]:
        return tuple(flag.check for flag in self.flags)


GOOD_FORM = FormVerdict()


class FormEvaluator:
    """Evalúa la postura de un fotograma y produce un :class:`FormVerdict`."""

    def __init__(self, cfg: models.FormConfig | None = None) -> None:
        self.cfg = cfg or models.FormConfig()

    def _joints(self, snapshot: KeypointSnapshot, *names: str):
        found = [snapshot.confident(name, self.cfg.min_confidence) for name in names]
        if any(kp is None for kp in found):
            return None
        return found

    def _knee_alignment(self, snapshot: KeypointSnapshot) -> Optional[FormFlag]:
        joints = self._joints(snapshot, LEFT_KNEE, RIGHT_KNEE, LEFT_ANKLE, RIGHT_ANKLE)
        if joints is None:
            return None
        left_knee, right_knee = joints[0], joints[1]
        spread = abs(left_knee.x - right_knee.x)
        if spread > self.cfg.lateral_pair_max_px:
            return FormFlag(CHECK_KNEE_ALIGNMENT, _MESSAGES[CHECK_KNEE_ALIGNMENT], FormQuality.NEEDS_ATTENTION, spread)
        return None

    def _trunk(self, snapshot: KeypointSnapshot) -> Optional[FormFlag]:
        joints = self._joints(snapshot, LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP)
        if joints is None:
            return None
        shoulders_x, _ = midpoint(joints[0], joints[1])
        hips_x, _ = midpoint(joints[2], joints[3])
        offset = abs(shoulders_x - hips_x)
        if offset > self.cfg.trunk_max_offset_px:
            return FormFlag(CHECK_TRUNK, _MESSAGES[CHECK_TRUNK], FormQuality.NEEDS_WORK, offset)
        return None

    def _depth(self, snapshot: KeypointSnapshot) -> Optional[FormFlag]:
        joints = self._joints(snapshot, LEFT_HIP, LEFT_KNEE, LEFT_ANKLE)
        if joints is None:
            return None
        hip, knee = joints[0], joints[1]
        # y crece hacia abajo: la cadera debe bajar hasta cerca de la rodilla.
        margin = hip.y - knee.y
        if margin < self.cfg.depth_margin_px:
            return FormFlag(CHECK_DEPTH, _MESSAGES[CHECK_DEPTH], FormQuality.NEEDS_WORK, margin)
        return None

    def evaluate(self, snapshot: KeypointSnapshot) -> FormVerdict:
        """Ejecuta las comprobaciones en orden fijo y elige la sugerencia.

        Una bandera de atención inmediata tiene prioridad; si no hay, manda la
        primera comprobación fallida."""

        flags = tuple(
            flag
            for flag in (self._knee_alignment(snapshot), self._trunk(snapshot), self._depth(snapshot))
            if flag is not None
        )
        if not flags:
            return GOOD_FORM

        urgent = next((f for f in flags if f.severity is FormQuality.NEEDS_ATTENTION), None)
        lead = urgent or flags[0]
        logger.debug("Form flags raised: %s", ", ".join(f.check for f in flags))
        return FormVerdict(quality=lead.severity, suggestion=lead.message, flags=flags)


__all__ = [
    "CHECK_DEPTH",
    "CHECK_KNEE_ALIGNMENT",
    "CHECK_TRUNK",
    "FORM_CHECKS",
    "FormEvaluator",
    "FormFlag",
    "FormVerdict",
    "GOOD_FORM",
]

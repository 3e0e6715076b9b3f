"""Resolución de roles articulares (pivote, proximal, distal) sobre una instantánea.

El resolvedor nunca lanza excepciones: una articulación ausente o de baja
confianza es lo habitual con pose en tiempo real, así que el resultado es
:class:`ResolvedJoints` o :class:`Unresolved` y el llamador decide qué hacer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union

from rehab_tracking.config import models
from rehab_tracking.config.constants import (
    LEFT_INDEX,
    LEFT_PINKY,
    LEFT_THUMB,
    LEFT_WRIST,
    RIGHT_INDEX,
    RIGHT_PINKY,
    RIGHT_THUMB,
    RIGHT_WRIST,
)
from rehab_tracking.config.exercises import JointRoleSpec

from .types import Keypoint, KeypointSnapshot

logger = logging.getLogger(__name__)

# Tabla revisada de sustituciones. El detector de cuerpo completo no entrega
# dedos, por lo que cada articulación de la mano se aproxima con su muñeca.
JOINT_FALLBACKS: Mapping[str, str] = {
    LEFT_INDEX: LEFT_WRIST,
    RIGHT_INDEX: RIGHT_WRIST,
    LEFT_THUMB: LEFT_WRIST,
    RIGHT_THUMB: RIGHT_WRIST,
    LEFT_PINKY: LEFT_WRIST,
    RIGHT_PINKY: RIGHT_WRIST,
}

ROLE_NAMES = ("proximal", "pivot", "distal")


@dataclass(frozen=True)
class ResolvedJoints:
    """Keypoints resueltos para los tres roles de un ejercicio."""

    proximal: Keypoint
    pivot: Keypoint
    distal: Keypoint
    substituted: tuple[str, ...] = ()

    @property
    def used_fallback(self) -> bool:
        return bool(self.substituted)

    def as_tuple(self) -> tuple[Keypoint, Keypoint, Keypoint]:
        return self.proximal, self.pivot, self.distal


@dataclass(frozen=True)
class Unresolved:
    """Roles que no pudieron resolverse en el fotograma."""

    missing: tuple[str, ...]


ResolveResult = Union[ResolvedJoints, Unresolved]


def _lookup(snapshot: KeypointSnapshot, name: str, threshold: float) -> tuple[Optional[Keypoint], bool]:
    """Busca ``name`` y, si no alcanza el umbral, su sustituto de la tabla."""

    kp = snapshot.confident(name, threshold)
    if kp is not None:
        return kp, False
    substitute = JOINT_FALLBACKS.get(name)
    if substitute is None:
        return None, False
    kp = snapshot.confident(substitute, threshold)
    return kp, kp is not None


def resolve(
    snapshot: KeypointSnapshot,
    roles: JointRoleSpec,
    cfg: models.ResolverConfig | None = None,
) -> ResolveResult:
    """Asigna keypoints a los roles de ``roles``.

    El pivote exige ``pivot_min_confidence``; proximal y distal,
    ``reference_min_confidence``. Un sustituto de :data:`JOINT_FALLBACKS` debe
    superar el mismo umbral que la articulación original.
    """

    cfg = cfg or models.ResolverConfig()
    thresholds = {
        "proximal": cfg.reference_min_confidence,
        "pivot": cfg.pivot_min_confidence,
        "distal": cfg.reference_min_confidence,
    }
    names = dict(zip(ROLE_NAMES, roles.joint_names()))

    found: dict[str, Keypoint] = {}
    substituted: list[str] = []
    missing: list[str] = []
    for role in ROLE_NAMES:
        kp, via_fallback = _lookup(snapshot, names[role], thresholds[role])
        if kp is None:
            missing.append(role)
            continue
        found[role] = kp
        if via_fallback:
            substituted.append(role)

    if missing:
        return Unresolved(missing=tuple(missing))
    if substituted:
        logger.debug("Resolved roles %s through fallback table", ", ".join(substituted))
    return ResolvedJoints(
        proximal=found["proximal"],
        pivot=found["pivot"],
        distal=found["distal"],
        substituted=tuple(substituted),
    )


def pick_side(snapshot: KeypointSnapshot, joints: Iterable[str]) -> str:
    """Elige ``"left"`` o ``"right"`` según la suma de confianzas de ``joints``.

    ``joints`` son nombres sin lado (``"wrist"``, ``"elbow"``). En caso de
    empate se prefiere el lado izquierdo."""

    totals = {"left": 0.0, "right": 0.0}
    for joint in joints:
        for side in totals:
            kp = snapshot.get(f"{side}_{joint}")
            if kp is not None:
                totals[side] += float(kp.score)
    return "right" if totals["right"] > totals["left"] else "left"


def count_visible(snapshot: KeypointSnapshot, names: Iterable[str], min_confidence: float) -> int:
    """Número de articulaciones de ``names`` con confianza por encima del umbral."""

    return sum(1 for name in names if snapshot.confident(name, min_confidence) is not None)


__all__ = [
    "JOINT_FALLBACKS",
    "ResolveResult",
    "ResolvedJoints",
    "Unresolved",
    "count_visible",
    "pick_side",
    "resolve",
]

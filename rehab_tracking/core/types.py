"""Tipos y utilidades comunes para etiquetar fases, modos de seguimiento e incidencias.

El objetivo del módulo es normalizar las etiquetas que circulan entre el
catálogo de ejercicios, la máquina de estados y la interfaz, evitando
condicionales repetidos. Así se documenta cómo se desambiguan etiquetas libres
provenientes de archivos de catálogo o de clientes heredados."""

from __future__ import annotations

from enum import Enum
from typing import Union


class Phase(str, Enum):
    """Estado grueso de la extremidad seguida: unidad del conteo de repeticiones."""

    EXTENDED = "extended"
    FLEXED = "flexed"


class TrackingMode(str, Enum):
    """Fuente de la fase: ángulo articular o historial de posiciones."""

    ANGLE = "angle"
    MOTION = "motion"


class FormQuality(str, Enum):
    """Severidad de una comprobación de forma, de menor a mayor urgencia."""

    GOOD = "good"
    NEEDS_WORK = "needs_work"
    NEEDS_ATTENTION = "needs_attention"


class TrackingIssue(str, Enum):
    """Incidencias recuperables que un fotograma puede reportar."""

    NO_POSE = "no_pose"
    LOW_VISIBILITY = "low_visibility"
    UNRESOLVED_JOINTS = "unresolved_joints"
    DEGENERATE_GEOMETRY = "degenerate_geometry"
    STALE_HISTORY = "stale_history"


_PHASE_ALIAS_MAP = {
    # El cliente heredado hablaba de "up"/"down" según la posición de la mano.
    "up": Phase.FLEXED.value,
    "down": Phase.EXTENDED.value,
    "start": Phase.EXTENDED.value,
    "rest": Phase.EXTENDED.value,
    "mid": Phase.FLEXED.value,
}


def _normalize_label(value: str) -> str:
    """Limpiar una etiqueta textual para compararla de forma consistente."""

    normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
    while "__" in normalized:
        normalized = normalized.replace("__", "_")
    return normalized


def as_phase(value: Union[str, "Phase"]) -> "Phase":
    """Convertir una etiqueta libre en una ``Phase``.

    A diferencia de otras normalizaciones no existe un valor desconocido: una
    fase inválida es un error del llamador y se reporta con ``ValueError``."""

    if isinstance(value, Phase):
        return value
    normalized = _normalize_label(str(value))
    mapped = _PHASE_ALIAS_MAP.get(normalized, normalized)
    try:
        return Phase(mapped)
    except ValueError:
        raise ValueError(f"Unknown phase label: {value!r}") from None


def as_tracking_mode(value: Union[str, "TrackingMode", None]) -> "TrackingMode | None":
    """Normalizar el modo de seguimiento declarado en el catálogo.

    Devuelve ``None`` cuando no se indica, para que el catálogo lo infiera a
    partir del nombre del ejercicio."""

    if isinstance(value, TrackingMode):
        return value
    if not value:
        return None
    try:
        return TrackingMode(_normalize_label(str(value)))
    except ValueError:
        raise ValueError(f"Unknown tracking mode: {value!r}") from None

"""Catálogo de ejercicios: roles articulares y umbrales validados al cargar.

Cada ejercicio declara qué articulaciones hacen de pivote (vértice del ángulo)
y de referencias proximal/distal, junto con los ángulos de inicio y de mitad de
repetición. Las definiciones incompletas se rechazan aquí, al cargar el
catálogo, en lugar de descubrir un ``None`` durante el seguimiento.

Formato admitido por entrada (YAML o ``dict``)::

    id: squat
    name: Squat
    target_body_part: legs
    tracking_mode: angle          # opcional, se infiere del nombre
    roles: {pivot: left_knee, proximal: left_hip, distal: left_ankle,
            start_angle: 160, mid_angle: 90, tolerance: 15}
    fallback_roles: {...}         # opcional

También se acepta el formato heredado del catálogo web:
``trackedJoints: {p1, p2, p3}`` y ``repLogic: {startAngle, midAngle}``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from rehab_tracking.core.errors import ExerciseConfigError
from rehab_tracking.core.types import TrackingMode, as_tracking_mode

from .settings import DEFAULT_TOLERANCE_DEG

logger = logging.getLogger(__name__)


def _require(data: Mapping[str, Any], keys: tuple[str, ...], context: str) -> None:
    missing = [key for key in keys if data.get(key) in (None, "")]
    if missing:
        raise ExerciseConfigError(f"{context}: missing required field(s) {', '.join(missing)}")


def _as_float(value: Any, name: str, context: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ExerciseConfigError(f"{context}: field '{name}' must be numeric, got {value!r}") from None


@dataclass(frozen=True)
class JointRoleSpec:
    """Roles articulares y umbrales angulares de un ejercicio."""

    pivot: str
    proximal: str
    distal: str
    start_angle: float
    mid_angle: float
    tolerance: float = DEFAULT_TOLERANCE_DEG

    def __post_init__(self) -> None:
        names = (self.pivot, self.proximal, self.distal)
        if not all(isinstance(n, str) and n for n in names):
            raise ExerciseConfigError(f"Joint roles must be non-empty names, got {names!r}")
        if len(set(names)) != 3:
            raise ExerciseConfigError(f"Joint roles must be distinct, got {names!r}")
        if not 0.0 <= self.mid_angle < self.start_angle <= 180.0:
            raise ExerciseConfigError(
                f"Angles must satisfy 0 <= mid_angle < start_angle <= 180 "
                f"(start={self.start_angle}, mid={self.mid_angle})"
            )
        if self.tolerance < 0:
            raise ExerciseConfigError(f"Tolerance must be >= 0, got {self.tolerance}")
        # Sin zona muerta entre ambas bandas la histéresis desaparece.
        if self.extended_above <= self.flexed_below:
            raise ExerciseConfigError(
                f"Tolerance {self.tolerance} leaves no dead zone between extended (> {self.extended_above}) "
                f"and flexed (< {self.flexed_below}) bands"
            )

    @property
    def extended_above(self) -> float:
        """Ángulo por encima del cual la extremidad se considera extendida."""
        return self.start_angle - self.tolerance

    @property
    def flexed_below(self) -> float:
        """Ángulo por debajo del cual la extremidad se considera flexionada."""
        return self.mid_angle + self.tolerance

    def joint_names(self) -> tuple[str, str, str]:
        """Devuelve ``(proximal, pivot, distal)`` en el orden del cálculo del ángulo."""
        return self.proximal, self.pivot, self.distal

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        default_tolerance: float = DEFAULT_TOLERANCE_DEG,
        context: str = "roles",
    ) -> "JointRoleSpec":
        """Valida y construye un ``JointRoleSpec`` desde datos del catálogo."""

        if not isinstance(data, Mapping):
            raise ExerciseConfigError(f"{context}: expected a mapping, got {type(data).__name__}")

        if "trackedJoints" in data or "repLogic" in data:
            joints = data.get("trackedJoints") or {}
            logic = data.get("repLogic") or {}
            _require(joints, ("p1", "p2", "p3"), f"{context}.trackedJoints")
            _require(logic, ("startAngle", "midAngle"), f"{context}.repLogic")
            return cls(
                pivot=str(joints["p2"]),
                proximal=str(joints["p1"]),
                distal=str(joints["p3"]),
                start_angle=_as_float(logic["startAngle"], "startAngle", context),
                mid_angle=_as_float(logic["midAngle"], "midAngle", context),
                tolerance=_as_float(logic.get("tolerance", default_tolerance), "tolerance", context),
            )

        _require(data, ("pivot", "proximal", "distal", "start_angle", "mid_angle"), context)
        return cls(
            pivot=str(data["pivot"]),
            proximal=str(data["proximal"]),
            distal=str(data["distal"]),
            start_angle=_as_float(data["start_angle"], "start_angle", context),
            mid_angle=_as_float(data["mid_angle"], "mid_angle", context),
            tolerance=_as_float(data.get("tolerance", default_tolerance), "tolerance", context),
        )


def _infer_tracking_mode(name: str, target_body_part: str) -> TrackingMode:
    # Los ejercicios de muñeca se siguen por movimiento: el ángulo en la
    # muñeca es inestable con keypoints de cuerpo completo.
    text = f"{name} {target_body_part}".lower()
    return TrackingMode.MOTION if "wrist" in text else TrackingMode.ANGLE


@dataclass(frozen=True)
class ExerciseDefinition:
    """Definición validada de un ejercicio del catálogo."""

    exercise_id: str
    name: str
    tracking_mode: TrackingMode
    target_body_part: str = ""
    roles: Optional[JointRoleSpec] = None
    fallback_roles: Optional[JointRoleSpec] = None
    motion_joint: str = "wrist"
    motion_anchor: str = "elbow"

    def __post_init__(self) -> None:
        if self.tracking_mode is TrackingMode.ANGLE and self.roles is None:
            raise ExerciseConfigError(f"Exercise '{self.exercise_id}' uses angle tracking but has no roles")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, default_tolerance: float = DEFAULT_TOLERANCE_DEG) -> "ExerciseDefinition":
        """Valida una entrada del catálogo (formato nuevo o heredado)."""

        if not isinstance(data, Mapping):
            raise ExerciseConfigError(f"Exercise entry must be a mapping, got {type(data).__name__}")
        exercise_id = data.get("id") or data.get("_id") or data.get("exercise_id")
        name = data.get("name")
        context = f"exercise '{exercise_id or name or '?'}'"
        if not exercise_id or not name:
            raise ExerciseConfigError(f"{context}: missing required field(s) id/name")

        target = str(data.get("target_body_part") or data.get("targetBodyPart") or "")
        try:
            mode = as_tracking_mode(data.get("tracking_mode")) or _infer_tracking_mode(str(name), target)
        except ValueError as exc:
            raise ExerciseConfigError(f"{context}: {exc}") from None

        roles = None
        if "roles" in data:
            roles = JointRoleSpec.from_mapping(
                data["roles"], default_tolerance=default_tolerance, context=f"{context}.roles"
            )
        elif "trackedJoints" in data or "repLogic" in data:
            roles = JointRoleSpec.from_mapping(data, default_tolerance=default_tolerance, context=context)
        elif mode is TrackingMode.ANGLE:
            raise ExerciseConfigError(f"{context}: missing required field(s) roles")

        fallback = None
        if data.get("fallback_roles") is not None:
            fallback = JointRoleSpec.from_mapping(
                data["fallback_roles"], default_tolerance=default_tolerance, context=f"{context}.fallback_roles"
            )

        return cls(
            exercise_id=str(exercise_id),
            name=str(name),
            tracking_mode=mode,
            target_body_part=target,
            roles=roles,
            fallback_roles=fallback,
            motion_joint=str(data.get("motion_joint", "wrist")),
            motion_anchor=str(data.get("motion_anchor", "elbow")),
        )


@dataclass
class ExerciseCatalog(Mapping[str, ExerciseDefinition]):
    """Colección de ejercicios validados indexada por identificador."""

    exercises: dict[str, ExerciseDefinition] = field(default_factory=dict)

    def __getitem__(self, key: str) -> ExerciseDefinition:
        try:
            return self.exercises[key]
        except KeyError:
            raise KeyError(f"Unknown exercise id: {key!r}") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self.exercises)

    def __len__(self) -> int:
        return len(self.exercises)

    def add(self, exercise: ExerciseDefinition) -> None:
        """Registra un ejercicio rechazando identificadores duplicados."""
        if exercise.exercise_id in self.exercises:
            raise ExerciseConfigError(f"Duplicate exercise id: {exercise.exercise_id!r}")
        self.exercises[exercise.exercise_id] = exercise

    @classmethod
    def from_entries(cls, entries: Any, *, default_tolerance: float = DEFAULT_TOLERANCE_DEG) -> "ExerciseCatalog":
        """Construye el catálogo desde una lista de entradas o ``{exercises: [...]}``."""
        if isinstance(entries, Mapping):
            entries = entries.get("exercises", [])
        if not isinstance(entries, list):
            raise ExerciseConfigError("Catalog must be a list of exercises or a mapping with 'exercises'")
        catalog = cls()
        for entry in entries:
            catalog.add(ExerciseDefinition.from_mapping(entry, default_tolerance=default_tolerance))
        return catalog


DEFAULT_EXERCISE_ENTRIES: list[dict[str, Any]] = [
    {
        "id": "squat",
        "name": "Squat",
        "target_body_part": "legs",
        "roles": {"pivot": "left_knee", "proximal": "left_hip", "distal": "left_ankle",
                  "start_angle": 160, "mid_angle": 90},
    },
    {
        "id": "bicep_curl",
        "name": "Bicep Curl",
        "target_body_part": "arms",
        "roles": {"pivot": "left_elbow", "proximal": "left_shoulder", "distal": "left_wrist",
                  "start_angle": 150, "mid_angle": 50},
    },
    {
        # MoveNet no detecta dedos: la tabla de sustitución lleva el índice a la
        # muñeca y, si aun así no se resuelve, se sigue el codo completo.
        "id": "finger_flexion",
        "name": "Finger Flexion",
        "target_body_part": "hand",
        "roles": {"pivot": "left_wrist", "proximal": "left_elbow", "distal": "left_index",
                  "start_angle": 160, "mid_angle": 120},
        "fallback_roles": {"pivot": "left_elbow", "proximal": "left_shoulder", "distal": "left_wrist",
                           "start_angle": 150, "mid_angle": 60},
    },
    {
        "id": "wrist_curl",
        "name": "Wrist Curl",
        "target_body_part": "wrist",
    },
]


def default_catalog() -> ExerciseCatalog:
    """Catálogo mínimo incluido con el paquete."""
    return ExerciseCatalog.from_entries(DEFAULT_EXERCISE_ENTRIES)


def load_catalog(path: str | Path, *, default_tolerance: float = DEFAULT_TOLERANCE_DEG) -> ExerciseCatalog:
    """Cargar y validar un catálogo de ejercicios desde YAML."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if data is None:
        raise ExerciseConfigError(f"Catalog file is empty: {path}")
    catalog = ExerciseCatalog.from_entries(data, default_tolerance=default_tolerance)
    logger.info("Loaded %d exercises from %s", len(catalog), path)
    return catalog

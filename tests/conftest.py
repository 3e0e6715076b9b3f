# tests/conftest.py
"""Utilidades de configuración comunes para la batería de pruebas."""
from __future__ import annotations

import math
import sys
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import pandas as pd
import pytest

# Repo root = parent de 'tests'
ROOT = Path(__file__).resolve().parents[1]

# Asegura que el paquete rehab_tracking es importable sin instalarlo
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from rehab_tracking.A_pose_input.types import KeypointSnapshot  # noqa: E402


def _ray(origin: tuple[float, float], angle_deg: float, length: float) -> tuple[float, float]:
    """Extremo de un segmento que forma ``angle_deg`` con la vertical hacia arriba."""
    theta = math.radians(angle_deg)
    return origin[0] + length * math.sin(theta), origin[1] - length * math.cos(theta)


def body_keypoints(
    *,
    knee_angle: float = 170.0,
    elbow_angle: float = 170.0,
    score: float = 0.9,
    scores: Optional[dict[str, float]] = None,
    exclude: Iterable[str] = (),
) -> list[dict[str, Any]]:
    """Cuerpo frontal sintético con la rodilla y el codo izquierdos articulables.

    La cadera queda 100 px por encima de la rodilla, de modo que la comprobación
    de profundidad siempre se dispara si el tobillo izquierdo es visible."""

    left_knee = (200.0, 400.0)
    left_elbow = (200.0, 230.0)
    positions = {
        "nose": (220.0, 100.0),
        "left_shoulder": (200.0, 150.0),
        "right_shoulder": (240.0, 150.0),
        "left_elbow": left_elbow,
        "right_elbow": (240.0, 230.0),
        "left_wrist": _ray(left_elbow, elbow_angle, 70.0),
        "right_wrist": (240.0, 300.0),
        "left_hip": (200.0, 300.0),
        "right_hip": (240.0, 300.0),
        "left_knee": left_knee,
        "right_knee": (240.0, 400.0),
        "left_ankle": _ray(left_knee, knee_angle, 100.0),
        "right_ankle": (240.0, 500.0),
    }
    scores = scores or {}
    skip = set(exclude)
    return [
        {"name": name, "x": x, "y": y, "score": scores.get(name, score)}
        for name, (x, y) in positions.items()
        if name not in skip
    ]


SnapshotFactory = Callable[..., KeypointSnapshot]


@pytest.fixture
def make_snapshot() -> SnapshotFactory:
    """Fábrica de instantáneas sintéticas con marca temporal explícita."""

    def _factory(timestamp: float = 0.0, **kwargs: Any) -> KeypointSnapshot:
        return KeypointSnapshot.from_keypoints(body_keypoints(**kwargs), timestamp=timestamp)

    return _factory


def landmark_rows(frames: Iterable[tuple[float, dict[str, Any]]]) -> list[dict[str, float]]:
    """Filas anchas ``<joint>_x``/``_y``/``_score`` + ``time_s`` como las de un CSV grabado."""

    rows = []
    for ts, kwargs in frames:
        row: dict[str, float] = {"time_s": ts}
        for kp in body_keypoints(**kwargs):
            row[f"{kp['name']}_x"] = kp["x"]
            row[f"{kp['name']}_y"] = kp["y"]
            row[f"{kp['name']}_score"] = kp["score"]
        rows.append(row)
    return rows


@pytest.fixture
def landmark_frame() -> Callable[..., "pd.DataFrame"]:
    """Fábrica de ``DataFrame`` de landmarks a partir de pares ``(t, kwargs)``."""

    def _factory(frames: Iterable[tuple[float, dict[str, Any]]]) -> "pd.DataFrame":
        return pd.DataFrame(landmark_rows(frames))

    return _factory

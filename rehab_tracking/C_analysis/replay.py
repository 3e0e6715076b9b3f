"""Reproducción de sesiones grabadas a partir de una tabla de landmarks.

El formato de entrada es un ``DataFrame`` (o CSV) con una fila por fotograma,
columnas ``<articulación>_x``, ``<articulación>_y`` y ``<articulación>_score``
y, opcionalmente, ``time_s``. Si falta ``time_s`` se deriva del índice de fila
y de ``fps``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List

import numpy as np
import pandas as pd

from rehab_tracking.A_pose_input.geometry import angle_abc_deg
from rehab_tracking.A_pose_input.types import Keypoint, KeypointSnapshot
from rehab_tracking.config import models
from rehab_tracking.config.exercises import ExerciseDefinition, JointRoleSpec
from rehab_tracking.D_modeling.session_summary import SessionSummary, SubjectiveFeedback

from .streaming import ExerciseSession, FrameResult, stream_session

logger = logging.getLogger(__name__)

TIME_COLUMN = "time_s"
DEFAULT_FPS = 30.0


def joint_names_in(df: pd.DataFrame) -> List[str]:
    """Articulaciones con columnas ``_x`` e ``_y`` presentes en ``df``."""

    names = []
    for column in df.columns:
        if column.endswith("_x"):
            joint = column[: -len("_x")]
            if f"{joint}_y" in df.columns:
                names.append(joint)
    return names


def _timestamps(df: pd.DataFrame, fps: float) -> np.ndarray:
    if TIME_COLUMN in df.columns:
        return pd.to_numeric(df[TIME_COLUMN], errors="coerce").to_numpy(dtype=float)
    fps = fps if fps and fps > 0 else DEFAULT_FPS
    return np.arange(len(df), dtype=float) / float(fps)


def snapshots_from_dataframe(df: pd.DataFrame, *, fps: float = DEFAULT_FPS) -> List[KeypointSnapshot]:
    """Convierte cada fila en una :class:`KeypointSnapshot`.

    Las articulaciones con coordenadas no finitas se omiten; sin columna
    ``_score`` se asume confianza 1."""

    joints = joint_names_in(df)
    times = _timestamps(df, fps)
    columns = {
        joint: (
            pd.to_numeric(df[f"{joint}_x"], errors="coerce").to_numpy(dtype=float),
            pd.to_numeric(df[f"{joint}_y"], errors="coerce").to_numpy(dtype=float),
            pd.to_numeric(df[f"{joint}_score"], errors="coerce").to_numpy(dtype=float)
            if f"{joint}_score" in df.columns
            else np.ones(len(df), dtype=float),
        )
        for joint in joints
    }

    snapshots: List[KeypointSnapshot] = []
    for row in range(len(df)):
        items = {}
        for joint, (xs, ys, scores) in columns.items():
            x, y, score = xs[row], ys[row], scores[row]
            if not (math.isfinite(x) and math.isfinite(y)):
                continue
            items[joint] = Keypoint(joint, float(x), float(y), float(score) if math.isfinite(score) else 0.0)
        ts = times[row] if math.isfinite(times[row]) else row / (fps or DEFAULT_FPS)
        snapshots.append(KeypointSnapshot(items, timestamp=float(ts)))
    return snapshots


def angle_series(
    df: pd.DataFrame,
    roles: JointRoleSpec,
    cfg: models.ResolverConfig | None = None,
) -> pd.Series:
    """Serie del ángulo en el pivote para toda la grabación.

    Las filas en las que algún rol no supera su umbral de confianza quedan en
    ``NaN``; no se aplica la tabla de sustitución."""

    cfg = cfg or models.ResolverConfig()
    proximal, pivot, distal = roles.joint_names()

    def _coords(joint: str) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        if f"{joint}_x" not in df.columns or f"{joint}_y" not in df.columns:
            nan = np.full(len(df), np.nan)
            return nan, nan, np.zeros(len(df))
        x = pd.to_numeric(df[f"{joint}_x"], errors="coerce").to_numpy(dtype=float)
        y = pd.to_numeric(df[f"{joint}_y"], errors="coerce").to_numpy(dtype=float)
        if f"{joint}_score" in df.columns:
            score = pd.to_numeric(df[f"{joint}_score"], errors="coerce").fillna(0.0).to_numpy(dtype=float)
        else:
            score = np.ones(len(df), dtype=float)
        return x, y, score

    ax, ay, a_score = _coords(proximal)
    bx, by, b_score = _coords(pivot)
    cx, cy, c_score = _coords(distal)
    angles = angle_abc_deg(ax, ay, bx, by, cx, cy)
    confident = (
        (a_score > cfg.reference_min_confidence)
        & (b_score > cfg.pivot_min_confidence)
        & (c_score > cfg.reference_min_confidence)
    )
    angles = np.where(confident, angles, np.nan)
    return pd.Series(angles, index=df.index, name=f"{pivot}_angle")


@dataclass
class ReplayResult:
    """Resultado de reproducir una grabación completa."""

    frames: List[FrameResult]
    summary: SessionSummary
    trace: pd.DataFrame

    @property
    def rep_count(self) -> int:
        return self.summary.total_reps


def replay_session(
    df: pd.DataFrame,
    exercise: ExerciseDefinition,
    target_reps: int,
    feedback: SubjectiveFeedback,
    cfg: models.Config | None = None,
    *,
    fps: float = DEFAULT_FPS,
    stop_at_completion: bool = True,
) -> ReplayResult:
    """Reproduce ``df`` fotograma a fotograma y devuelve el resumen de la sesión."""

    session = ExerciseSession(exercise, target_reps, cfg)
    snapshots = snapshots_from_dataframe(df, fps=fps)
    if stop_at_completion:
        frames = list(stream_session(session, snapshots))
    else:
        frames = [session.process_frame(snapshot) for snapshot in snapshots]
    logger.info(
        "Replayed %d/%d frames for %s: %d reps",
        len(frames),
        len(snapshots),
        exercise.exercise_id,
        session.rep_count,
    )
    trace = session.trace_frame()
    summary = session.finalize_session(feedback)
    return ReplayResult(frames=frames, summary=summary, trace=trace)


def load_landmarks_csv(path: str | Path) -> pd.DataFrame:
    """Lee un CSV de landmarks con el formato descrito en el módulo."""

    df = pd.read_csv(path)
    if not joint_names_in(df):
        raise ValueError(f"No '<joint>_x'/'<joint>_y' columns found in {path}")
    return df


__all__ = [
    "ReplayResult",
    "angle_series",
    "joint_names_in",
    "load_landmarks_csv",
    "replay_session",
    "snapshots_from_dataframe",
]

"""Resumen analítico de una sesión a partir de los eventos y del feedback subjetivo.

El constructor acumula eventos mientras dura la sesión y ``finalize`` es una
función pura de ese estado más el feedback del paciente: llamarla dos veces
devuelve el mismo resumen.

Fórmulas:

- ``completion_percentage = completadas / objetivo * 100`` acotado a ``[0, 100]``.
- ``session_quality = redondeo((100 - dolor*5 + (10 - dificultad)*5 + completado) / 3)``
  con redondeo *half-up* y acotado a ``[0, 100]``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from rehab_tracking.C_analysis.form_evaluation import FORM_CHECKS
from rehab_tracking.C_analysis.repetition_counter import RepEvent, SessionCompleteEvent, TrackingEvent
from rehab_tracking.config import models
from rehab_tracking.core.types import FormQuality
from rehab_tracking.utils.json_safety import json_safe

logger = logging.getLogger(__name__)

RECOMMEND_REDUCE_INTENSITY = "Consider reducing intensity or taking more rest between sessions"
RECOMMEND_PRACTICE_FORM = "Practice basic form before increasing reps"
RECOMMEND_FULL_RANGE = "Focus on completing full range of motion for each rep"
RECOMMEND_MAINTAIN = "Excellent session! Continue with current routine"

FORM_NOT_EVALUATED = "Form was not evaluated for this exercise"

_CHECK_LABELS = {
    "knee_alignment": "knee alignment",
    "trunk_posture": "back posture",
    "depth": "squat depth",
}

EVENT_COLUMNS = ["repetition_index", "timestamp", "form_quality", *FORM_CHECKS]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class SubjectiveFeedback:
    """Valoración del paciente al terminar: dolor y dificultad en escala 1-10."""

    pain_level: float
    difficulty: float
    notes: str = ""

    def __post_init__(self) -> None:
        for name in ("pain_level", "difficulty"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number between 1 and 10, got {value!r}")
            if not 1 <= value <= 10:
                raise ValueError(f"{name} must be between 1 and 10, got {value}")
        if self.notes is None:
            object.__setattr__(self, "notes", "")


@dataclass(frozen=True)
class SessionSummary:
    """Resumen inmutable que se entrega al colaborador de persistencia."""

    exercise_id: str
    total_reps: int
    target_reps: int
    completion_percentage: float
    average_pain_level: float
    average_difficulty: float
    form_improvements: tuple[str, ...]
    session_quality: int
    recommendations: tuple[str, ...]
    average_form_score: Optional[float] = None
    session_duration_s: float = 0.0
    notes: str = ""

    def to_payload(self) -> Dict[str, Any]:
        """Carga JSON con las claves del esquema de analítica de sesiones."""

        return json_safe(
            {
                "exerciseId": self.exercise_id,
                "repsCompleted": self.total_reps,
                "sessionDurationSec": self.session_duration_s,
                "averageFormScore": self.average_form_score,
                "completionRate": self.completion_percentage,
                "patientFeedback": {
                    "painLevel": self.average_pain_level,
                    "difficulty": self.average_difficulty,
                    "notes": self.notes,
                },
                "analytics": {
                    "totalReps": self.total_reps,
                    "targetReps": self.target_reps,
                    "completionPercentage": self.completion_percentage,
                    "averagePainLevel": self.average_pain_level,
                    "averageDifficulty": self.average_difficulty,
                    "formImprovements": list(self.form_improvements),
                    "sessionQuality": self.session_quality,
                    "recommendations": list(self.recommendations),
                },
            }
        )


def session_quality(pain_level: float, difficulty: float, completion_percentage: float) -> int:
    """Puntuación compuesta de la sesión en ``[0, 100]``."""

    raw = (100 - pain_level * 5 + (10 - difficulty) * 5 + completion_percentage) / 3
    return int(_clamp(_round_half_up(raw), 0, 100))


def recommendations_for(
    pain_level: float,
    difficulty: float,
    quality: int,
    completed: int,
    target: int,
    cfg: models.SummaryConfig | None = None,
) -> List[str]:
    """Recomendaciones en orden fijo: dolor, dificultad y completado."""

    cfg = cfg or models.SummaryConfig()
    recs: List[str] = []
    if pain_level > cfg.high_pain_level or quality < cfg.low_quality_threshold:
        recs.append(RECOMMEND_REDUCE_INTENSITY)
    if difficulty > cfg.high_difficulty_level:
        recs.append(RECOMMEND_PRACTICE_FORM)
    if completed < target * cfg.completion_floor:
        recs.append(RECOMMEND_FULL_RANGE)
    if not recs:
        recs.append(RECOMMEND_MAINTAIN)
    return recs


@dataclass
class SessionSummaryBuilder:
    """Acumula eventos de una sesión y construye su :class:`SessionSummary`."""

    exercise_id: str
    target_reps: int
    cfg: models.SummaryConfig = field(default_factory=models.SummaryConfig)
    rep_events: List[RepEvent] = field(default_factory=list)
    completed_at: Optional[float] = None
    first_ts: Optional[float] = None
    last_ts: Optional[float] = None

    def __post_init__(self) -> None:
        if int(self.target_reps) <= 0:
            raise ValueError(f"target_reps must be a positive integer, got {self.target_reps}")

    def add_event(self, event: TrackingEvent) -> None:
        """Registra un evento; las transiciones de fase no afectan al resumen."""
        if isinstance(event, RepEvent):
            self.rep_events.append(event)
        elif isinstance(event, SessionCompleteEvent) and self.completed_at is None:
            self.completed_at = event.timestamp

    def observe_frame(self, timestamp: float) -> None:
        """Anota la marca temporal de un fotograma procesado (duración de sesión)."""
        if not math.isfinite(timestamp):
            return
        if self.first_ts is None:
            self.first_ts = float(timestamp)
        self.last_ts = float(timestamp)

    @property
    def completed_reps(self) -> int:
        return max((e.repetition_index for e in self.rep_events), default=0)

    def events_frame(self) -> pd.DataFrame:
        """Tabla de repeticiones con una columna booleana por comprobación de forma.

        Las repeticiones sin evaluación de forma tienen ``form_quality`` y las
        columnas de comprobación vacías."""

        rows = []
        for event in self.rep_events:
            row = {
                "repetition_index": event.repetition_index,
                "timestamp": event.timestamp,
                "form_quality": event.form_quality.value if event.form_quality is not None else None,
            }
            if event.form_verdict is not None:
                flagged = set(event.form_verdict.flag_names())
                row.update({check: check in flagged for check in FORM_CHECKS})
            else:
                row.update({check: None for check in FORM_CHECKS})
            rows.append(row)
        return pd.DataFrame(rows, columns=EVENT_COLUMNS)

    def _form_stats(self) -> tuple[Optional[float], List[str]]:
        frame = self.events_frame()
        if frame.empty:
            return None, []

        frame = frame[frame["form_quality"].notna()]
        if frame.empty:
            return None, [FORM_NOT_EVALUATED]

        total = len(frame)
        good = int((frame["form_quality"] == FormQuality.GOOD.value).sum())
        score = round(good / total * 100.0, 1)
        notes = [f"Good form on {good} of {total} reps ({score:.0f}%)"]

        flagged = frame[list(FORM_CHECKS)].astype(bool).sum()
        for check in FORM_CHECKS:
            count = int(flagged[check])
            if count:
                notes.append(f"Work on {_CHECK_LABELS[check]}: flagged on {count} of {total} reps")
            else:
                notes.append(f"Maintained good {_CHECK_LABELS[check]} throughout")
        return score, notes

    def finalize(self, feedback: SubjectiveFeedback) -> SessionSummary:
        """Construye el resumen; no modifica el estado acumulado."""

        completed = self.completed_reps
        target = int(self.target_reps)
        completion = _clamp(completed / target * 100.0, 0.0, 100.0)
        quality = session_quality(feedback.pain_level, feedback.difficulty, completion)
        recs = recommendations_for(feedback.pain_level, feedback.difficulty, quality, completed, target, self.cfg)
        form_score, improvements = self._form_stats()

        duration = 0.0
        if self.first_ts is not None and self.last_ts is not None:
            duration = max(0.0, self.last_ts - self.first_ts)

        summary = SessionSummary(
            exercise_id=self.exercise_id,
            total_reps=completed,
            target_reps=target,
            completion_percentage=completion,
            average_pain_level=float(feedback.pain_level),
            average_difficulty=float(feedback.difficulty),
            form_improvements=tuple(improvements),
            session_quality=quality,
            recommendations=tuple(recs),
            average_form_score=form_score,
            session_duration_s=round(duration, 3),
            notes=feedback.notes,
        )
        logger.debug(
            "Session summary for %s: %d/%d reps, quality=%d",
            self.exercise_id,
            completed,
            target,
            quality,
        )
        return summary


__all__ = [
    "FORM_NOT_EVALUATED",
    "RECOMMEND_FULL_RANGE",
    "RECOMMEND_MAINTAIN",
    "RECOMMEND_PRACTICE_FORM",
    "RECOMMEND_REDUCE_INTENSITY",
    "SessionSummary",
    "SessionSummaryBuilder",
    "SubjectiveFeedback",
    "recommendations_for",
    "session_quality",
]

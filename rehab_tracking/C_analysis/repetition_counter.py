"""Conteo de repeticiones en tiempo real mediante una máquina de estados con histéresis.

Convención de conteo (común a todos los ejercicios y a ambos caminos, ángulo y
movimiento): una repetición se cuenta en la transición ``flexed → extended``,
es decir, al volver a la posición de inicio después de haber visitado la fase
activa. El periodo refractario (*cool-down*) se mide entre conteos; una
transición que cae dentro de él cambia la fase pero no suma.

Alcanzar el objetivo no detiene la máquina: solo programa el evento de fin de
sesión, que :meth:`RepetitionStateMachine.poll_completion` emite una única vez
cuando vence el retardo.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Union

from rehab_tracking.B_tracking.tracking_state import TrackingState
from rehab_tracking.config import models
from rehab_tracking.config.exercises import JointRoleSpec
from rehab_tracking.core.types import FormQuality, Phase, as_phase

from .form_evaluation import GOOD_FORM, FormVerdict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhaseTransitionEvent:
    """Cambio de fase observado por la máquina de estados."""

    from_phase: Phase
    to_phase: Phase
    timestamp: float


@dataclass(frozen=True)
class RepEvent:
    """Repetición contada; ``repetition_index`` es el total acumulado.

    ``form_verdict`` es ``None`` cuando la forma no se evaluó (camino por
    movimiento)."""

    repetition_index: int
    transition: PhaseTransitionEvent
    timestamp: float
    form_quality: Optional[FormQuality]
    form_verdict: Optional[FormVerdict]

    @property
    def form_evaluated(self) -> bool:
        return self.form_verdict is not None


@dataclass(frozen=True)
class SessionCompleteEvent:
    """Señal de fin de sesión emitida tras el retardo de cortesía."""

    rep_count: int
    target_reps: int
    timestamp: float


TrackingEvent = Union[PhaseTransitionEvent, RepEvent, SessionCompleteEvent]


class RepetitionStateMachine:
    """Máquina ``extended``/``flexed`` que emite eventos de fase y de repetición.

    Args:
        spec: roles y umbrales angulares; obligatorio para :meth:`update_angle`.
        state: estado de la sesión, compartido con el seguidor de movimiento.
        cfg: parámetros de conteo.
        target_reps: repeticiones objetivo de la sesión.
        completion_delay: segundos entre alcanzar el objetivo y señalar el fin.
    """

    def __init__(
        self,
        spec: Optional[JointRoleSpec],
        state: TrackingState,
        cfg: models.CountingConfig | None = None,
        *,
        target_reps: int,
        completion_delay: float,
    ) -> None:
        if int(target_reps) <= 0:
            raise ValueError(f"target_reps must be a positive integer, got {target_reps}")
        self.spec = spec
        self.state = state
        self.cfg = cfg or models.CountingConfig()
        self.target_reps = int(target_reps)
        self.completion_delay = float(completion_delay)

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def rep_count(self) -> int:
        return self.state.rep_count

    # --- Entradas ----------------------------------------------------------------
    def classify_angle(self, angle: Optional[float], spec: Optional[JointRoleSpec] = None) -> Optional[Phase]:
        """Fase indicada por ``angle`` o ``None`` si cae en la zona muerta.

        ``spec`` sustituye a los umbrales propios cuando la sesión sigue los
        roles de respaldo del ejercicio."""

        spec = spec or self.spec
        if spec is None:
            raise ValueError("Angle updates require a JointRoleSpec")
        if angle is None or not math.isfinite(angle):
            return None
        if angle > spec.extended_above:
            return Phase.EXTENDED
        if angle < spec.flexed_below:
            return Phase.FLEXED
        return None

    def update_angle(
        self,
        angle: Optional[float],
        timestamp: float,
        verdict: FormVerdict = GOOD_FORM,
        *,
        spec: Optional[JointRoleSpec] = None,
    ) -> List[TrackingEvent]:
        """Camino angular: clasifica ``angle`` con histéresis y avanza la máquina."""

        self.state.unresolved_streak = 0
        candidate = self.classify_angle(angle, spec)
        if candidate is None:
            return []
        return self._advance(candidate, timestamp, verdict)

    def update_phase(
        self,
        candidate: Union[Phase, str, None],
        timestamp: float,
        verdict: Optional[FormVerdict] = None,
    ) -> List[TrackingEvent]:
        """Camino por movimiento: recibe directamente la fase candidata.

        Sin ``verdict`` las repeticiones quedan marcadas como no evaluadas."""

        self.state.unresolved_streak = 0
        if candidate is None:
            return []
        return self._advance(as_phase(candidate), timestamp, verdict)

    def register_unresolved(self) -> bool:
        """Anota un fotograma sin articulaciones resueltas.

        Devuelve ``True`` cuando la racha alcanza ``reposition_after_frames``
        y conviene pedir al paciente que se recoloque."""

        self.state.unresolved_streak += 1
        limit = self.cfg.reposition_after_frames
        if self.state.unresolved_streak == limit:
            logger.warning("Joints unresolved for %d consecutive frames", limit)
        return self.state.unresolved_streak >= limit

    def poll_completion(self, now: float) -> Optional[SessionCompleteEvent]:
        """Emite el fin de sesión una sola vez, cuando vence el retardo."""

        due = self.state.completion_due_at
        if due is None or self.state.completion_signalled or now < due:
            return None
        self.state.completion_signalled = True
        logger.info("Session complete: %d/%d reps", self.state.rep_count, self.target_reps)
        return SessionCompleteEvent(self.state.rep_count, self.target_reps, float(now))

    # --- Transiciones --------------------------------------------------------------
    def _advance(self, candidate: Phase, timestamp: float, verdict: Optional[FormVerdict]) -> List[TrackingEvent]:
        state = self.state
        previous = state.phase
        if candidate is previous:
            return []

        transition = PhaseTransitionEvent(previous, candidate, float(timestamp))
        events: List[TrackingEvent] = [transition]
        state.phase = candidate
        logger.debug("Phase %s -> %s at %.3f", previous.value, candidate.value, timestamp)

        if candidate is Phase.FLEXED:
            state.visited_active = True
            return events

        if not state.visited_active:
            return events
        state.visited_active = False

        if state.last_count_ts is not None and timestamp - state.last_count_ts < self.cfg.cooldown_sec:
            logger.debug("Repetition suppressed by cool-down at %.3f", timestamp)
            return events

        state.rep_count += 1
        state.last_count_ts = float(timestamp)
        events.append(
            RepEvent(
                repetition_index=state.rep_count,
                transition=transition,
                timestamp=float(timestamp),
                form_quality=verdict.quality if verdict is not None else None,
                form_verdict=verdict,
            )
        )
        logger.debug("Repetition %d counted at %.3f", state.rep_count, timestamp)

        if state.rep_count >= self.target_reps and state.completion_due_at is None:
            state.completion_due_at = float(timestamp) + self.completion_delay
        return events


__all__ = [
    "PhaseTransitionEvent",
    "RepEvent",
    "RepetitionStateMachine",
    "SessionCompleteEvent",
    "TrackingEvent",
]

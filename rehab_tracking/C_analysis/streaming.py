"""Procesamiento cuadro a cuadro de una sesión de ejercicio.

:class:`ExerciseSession` concentra la lógica de un fotograma:

- descartar fotogramas sin pose o con el cuerpo fuera de cámara;
- obtener la fase (por ángulo articular o por movimiento de la muñeca);
- avanzar la máquina de estados y adjuntar el veredicto de forma;
- elegir el texto de feedback y registrar los eventos para el resumen.

El bucle cooperativo :func:`stream_session` solo comprueba la señal de parada
entre fotogramas, de modo que un fotograma nunca se procesa a medias.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional

import pandas as pd

from rehab_tracking.A_pose_input.geometry import angle_at, is_degenerate
from rehab_tracking.A_pose_input.joint_resolver import ResolvedJoints, count_visible, pick_side, resolve
from rehab_tracking.A_pose_input.types import KeypointSnapshot
from rehab_tracking.B_tracking.motion_tracker import MotionTracker
from rehab_tracking.B_tracking.tracking_state import TrackingState
from rehab_tracking.config import models
from rehab_tracking.config.constants import (
    ESSENTIAL_JOINTS,
    FEEDBACK_FALLBACK_ROLES,
    FEEDBACK_LOW_VISIBILITY,
    FEEDBACK_NO_POSE,
    FEEDBACK_READY,
    FEEDBACK_REPOSITION,
    FEEDBACK_RETURN_TO_START,
    FEEDBACK_SHOW_WRIST,
)
from rehab_tracking.config.exercises import ExerciseDefinition, JointRoleSpec
from rehab_tracking.core.errors import SessionFinalizedError
from rehab_tracking.core.types import Phase, TrackingIssue, TrackingMode
from rehab_tracking.D_modeling.session_summary import (
    SessionSummary,
    SessionSummaryBuilder,
    SubjectiveFeedback,
)

from .form_evaluation import GOOD_FORM, FormEvaluator, FormVerdict
from .repetition_counter import (
    PhaseTransitionEvent,
    RepEvent,
    RepetitionStateMachine,
    SessionCompleteEvent,
    TrackingEvent,
)

logger = logging.getLogger(__name__)

TRACE_COLUMNS = ["timestamp", "phase", "rep_count", "angle", "issue", "form_quality", "feedback_text"]


@dataclass(frozen=True)
class FrameResult:
    """Salida de un fotograma para la interfaz y para el registro de la sesión."""

    timestamp: float
    phase: Phase
    rep_count: int
    feedback_text: str
    form_flags: tuple[str, ...] = ()
    issue: Optional[TrackingIssue] = None
    angle: Optional[float] = None
    events: tuple[TrackingEvent, ...] = field(default_factory=tuple)

    @property
    def session_complete(self) -> bool:
        return any(isinstance(event, SessionCompleteEvent) for event in self.events)

    @property
    def rep_events(self) -> tuple[RepEvent, ...]:
        return tuple(event for event in self.events if isinstance(event, RepEvent))


def _rep_feedback(event: RepEvent, verdict: FormVerdict) -> str:
    if verdict.is_good:
        return f"Rep {event.repetition_index} complete! Great form."
    return f"Rep {event.repetition_index} done. {verdict.suggestion}"


class ExerciseSession:
    """Sesión de seguimiento de un ejercicio con su estado propio.

    Args:
        exercise: definición validada del catálogo.
        target_reps: repeticiones objetivo.
        cfg: configuración del motor; por defecto :class:`~rehab_tracking.config.Config`.
    """

    def __init__(
        self,
        exercise: ExerciseDefinition,
        target_reps: int,
        cfg: models.Config | None = None,
    ) -> None:
        self.exercise = exercise
        self.target_reps = int(target_reps)
        self.cfg = cfg or models.Config()
        self.state = TrackingState(capacity=self.cfg.motion.history_capacity)

        motion = exercise.tracking_mode is TrackingMode.MOTION
        delay = (
            self.cfg.counting.motion_completion_delay_sec
            if motion
            else self.cfg.counting.angle_completion_delay_sec
        )
        self.machine = RepetitionStateMachine(
            exercise.roles,
            self.state,
            self.cfg.counting,
            target_reps=self.target_reps,
            completion_delay=delay,
        )
        self.tracker = MotionTracker(self.state, self.cfg.motion) if motion else None
        self.evaluator = FormEvaluator(self.cfg.form)
        self.summary = SessionSummaryBuilder(exercise.exercise_id, self.target_reps, self.cfg.summary)

        self.feedback_text = FEEDBACK_READY
        self.last_verdict: FormVerdict = GOOD_FORM
        self._fallback_announced = False
        self._finalized = False
        self._trace: List[dict] = []

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def rep_count(self) -> int:
        return self.state.rep_count

    @property
    def phase(self) -> Phase:
        return self.state.phase

    # --- API pública -------------------------------------------------------------
    def process_frame(
        self, snapshot: Optional[KeypointSnapshot], timestamp: Optional[float] = None
    ) -> FrameResult:
        """Procesa un fotograma y devuelve fase, conteo, feedback e incidencias.

        ``timestamp`` solo se usa cuando ``snapshot`` es ``None``; en otro caso
        manda la marca temporal de la instantánea."""

        if self._finalized:
            raise SessionFinalizedError(f"Session for '{self.exercise.exercise_id}' is already finalized")

        if snapshot is not None:
            ts = float(snapshot.timestamp)
        elif timestamp is not None:
            ts = float(timestamp)
        else:
            ts = time.monotonic()
        self.summary.observe_frame(ts)

        events: List[TrackingEvent] = []
        issue: Optional[TrackingIssue] = None
        angle: Optional[float] = None
        verdict: Optional[FormVerdict] = None

        if snapshot is None or len(snapshot) == 0:
            issue = TrackingIssue.NO_POSE
            self.feedback_text = FEEDBACK_NO_POSE
        elif (
            count_visible(snapshot, ESSENTIAL_JOINTS, self.cfg.resolver.essential_min_confidence)
            < self.cfg.resolver.min_essential_joints
        ):
            issue = TrackingIssue.LOW_VISIBILITY
            self.feedback_text = FEEDBACK_LOW_VISIBILITY
        elif self.tracker is not None:
            issue = self._process_motion(self.tracker, snapshot, ts, events)
        else:
            issue, angle, verdict = self._process_angle(snapshot, ts, events)

        completion = self.machine.poll_completion(ts)
        if completion is not None:
            events.append(completion)
            self.feedback_text = self._completion_feedback(completion)

        for event in events:
            self.summary.add_event(event)

        result = FrameResult(
            timestamp=ts,
            phase=self.state.phase,
            rep_count=self.state.rep_count,
            feedback_text=self.feedback_text,
            form_flags=verdict.flag_names() if verdict is not None else (),
            issue=issue,
            angle=angle,
            events=tuple(events),
        )
        self._trace.append(
            {
                "timestamp": ts,
                "phase": result.phase.value,
                "rep_count": result.rep_count,
                "angle": angle if angle is not None else math.nan,
                "issue": issue.value if issue is not None else None,
                "form_quality": verdict.quality.value if verdict is not None else None,
                "feedback_text": result.feedback_text,
            }
        )
        if issue is not None:
            logger.debug("Frame at %.3f reported %s", ts, issue.value)
        return result

    def tick(self, now: Optional[float] = None) -> Optional[SessionCompleteEvent]:
        """Vence el retardo de fin de sesión aunque no lleguen fotogramas."""

        if self._finalized:
            return None
        now = float(now) if now is not None else time.monotonic()
        completion = self.machine.poll_completion(now)
        if completion is not None:
            self.summary.add_event(completion)
            self.feedback_text = self._completion_feedback(completion)
        return completion

    def finalize_session(self, feedback: SubjectiveFeedback) -> SessionSummary:
        """Cierra la sesión y construye el resumen; se puede repetir sin efectos."""

        if not self._finalized:
            self._finalized = True
            logger.info(
                "Finalizing session for %s with %d/%d reps",
                self.exercise.exercise_id,
                self.state.rep_count,
                self.target_reps,
            )
        return self.summary.finalize(feedback)

    def trace_frame(self) -> pd.DataFrame:
        """Traza por fotograma de la sesión como ``DataFrame``."""

        return pd.DataFrame(self._trace, columns=TRACE_COLUMNS)

    # --- Caminos internos ------------------------------------------------------------
    def _completion_feedback(self, event: SessionCompleteEvent) -> str:
        return f"Session Complete! {event.rep_count}/{event.target_reps} reps completed."

    def _select_side(self, snapshot: KeypointSnapshot, joints: tuple[str, str]) -> str:
        """Lado seguido con histéresis: el otro lado debe ganar varios fotogramas seguidos."""

        state = self.state
        candidate = pick_side(snapshot, joints)
        if state.tracked_side is None:
            state.tracked_side = candidate
            self.feedback_text = f"Tracking {candidate} {joints[0]}. Keep it centered in frame."
            return candidate
        if candidate == state.tracked_side:
            state.side_challenge_streak = 0
            return candidate

        state.side_challenge_streak += 1
        if state.side_challenge_streak < self.cfg.motion.side_switch_frames:
            return state.tracked_side

        logger.info("Tracked side switched from %s to %s", state.tracked_side, candidate)
        state.reset_history()
        state.tracked_side = candidate
        state.side_challenge_streak = 0
        self.feedback_text = f"Tracking {candidate} {joints[0]}. Keep it centered in frame."
        return candidate

    def _process_motion(
        self, tracker: MotionTracker, snapshot: KeypointSnapshot, ts: float, events: List[TrackingEvent]
    ) -> Optional[TrackingIssue]:
        joint, anchor_joint = self.exercise.motion_joint, self.exercise.motion_anchor
        side = self._select_side(snapshot, (joint, anchor_joint))

        point = snapshot.get(f"{side}_{joint}")
        anchor = snapshot.get(f"{side}_{anchor_joint}")
        estimate = tracker.update(
            point,
            point.score if point is not None else 0.0,
            anchor,
            anchor.score if anchor is not None else 0.0,
        )
        if estimate.issue is TrackingIssue.UNRESOLVED_JOINTS:
            self.machine.register_unresolved()
            self.feedback_text = FEEDBACK_SHOW_WRIST
            return estimate.issue

        new_events = self.machine.update_phase(estimate.phase, ts)
        events.extend(new_events)
        for event in new_events:
            if isinstance(event, RepEvent):
                self.feedback_text = f"Rep {event.repetition_index} complete!"
        return estimate.issue

    def _resolve_roles(self, snapshot: KeypointSnapshot, roles: JointRoleSpec):
        result = resolve(snapshot, roles, self.cfg.resolver)
        if self.exercise.fallback_roles is None:
            return result, roles, False
        # Si la sustitución lleva dos roles a la misma muñeca el ángulo es
        # degenerado; en ese caso se prueba con los roles de respaldo.
        if isinstance(result, ResolvedJoints) and not is_degenerate(*result.as_tuple()):
            return result, roles, False
        fallback = resolve(snapshot, self.exercise.fallback_roles, self.cfg.resolver)
        if isinstance(fallback, ResolvedJoints):
            return fallback, self.exercise.fallback_roles, True
        return result, roles, False

    def _process_angle(
        self, snapshot: KeypointSnapshot, ts: float, events: List[TrackingEvent]
    ) -> tuple[Optional[TrackingIssue], Optional[float], Optional[FormVerdict]]:
        # El catálogo garantiza roles en los ejercicios por ángulo.
        resolved, spec, used_fallback = self._resolve_roles(snapshot, self.exercise.roles)
        if not isinstance(resolved, ResolvedJoints):
            if self.machine.register_unresolved():
                self.feedback_text = FEEDBACK_REPOSITION
            return TrackingIssue.UNRESOLVED_JOINTS, None, None

        if used_fallback and not self._fallback_announced:
            self._fallback_announced = True
            logger.info("Using fallback roles for %s", self.exercise.exercise_id)
            self.feedback_text = FEEDBACK_FALLBACK_ROLES

        verdict = self.evaluator.evaluate(snapshot)
        self.last_verdict = verdict

        joints = resolved.as_tuple()
        if is_degenerate(*joints):
            self.state.unresolved_streak = 0
            return TrackingIssue.DEGENERATE_GEOMETRY, 0.0, verdict

        angle = angle_at(*joints)
        new_events = self.machine.update_angle(angle, ts, verdict, spec=spec)
        events.extend(new_events)
        self._angle_feedback(new_events, verdict)
        return None, angle, verdict

    def _angle_feedback(self, new_events: List[TrackingEvent], verdict: FormVerdict) -> None:
        for event in new_events:
            if isinstance(event, RepEvent):
                self.feedback_text = _rep_feedback(event, verdict)
            elif isinstance(event, PhaseTransitionEvent) and event.to_phase is Phase.FLEXED:
                self.feedback_text = FEEDBACK_RETURN_TO_START
        if verdict.needs_attention:
            self.feedback_text = verdict.suggestion


def stream_session(
    session: ExerciseSession,
    frames: Iterable[Optional[KeypointSnapshot]],
    should_stop: Optional[Callable[[], bool]] = None,
) -> Iterator[FrameResult]:
    """Recorre ``frames`` produciendo un :class:`FrameResult` por fotograma.

    Se detiene entre fotogramas cuando ``should_stop()`` devuelve ``True`` o
    tras emitir el evento de fin de sesión."""

    processed = 0
    for snapshot in frames:
        if should_stop is not None and should_stop():
            logger.info("Stop requested after %d frames", processed)
            return
        result = session.process_frame(snapshot)
        processed += 1
        yield result
        if result.session_complete:
            logger.info("Session complete after %d frames", processed)
            return


__all__ = ["ExerciseSession", "FrameResult", "TRACE_COLUMNS", "stream_session"]

"""Service layer that drives a tracking session and hands its summary to persistence."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable, Iterable, List, Optional

from rehab_tracking.A_pose_input.types import KeypointSnapshot
from rehab_tracking.C_analysis.streaming import ExerciseSession, FrameResult, stream_session
from rehab_tracking.config import models
from rehab_tracking.config.exercises import ExerciseDefinition
from rehab_tracking.core.errors import PersistenceError
from rehab_tracking.D_modeling.session_summary import SessionSummary, SubjectiveFeedback

logger = logging.getLogger(__name__)

FrameListener = Callable[[FrameResult], None]
PersistCallback = Callable[[dict], Any]


class SessionService:
    """Own one :class:`ExerciseSession`, fan out its frames and deliver its summary.

    Listeners are fire-and-forget: an exception raised by a listener is logged
    and never interrupts the frame loop.
    """

    def __init__(
        self,
        exercise: ExerciseDefinition,
        target_reps: int,
        cfg: models.Config | None = None,
        *,
        session_id: Optional[str] = None,
        listeners: Iterable[FrameListener] = (),
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.session = ExerciseSession(exercise, target_reps, cfg)
        self._listeners: List[FrameListener] = list(listeners)
        self._pending: Optional[SessionSummary] = None
        self.delivered: Optional[SessionSummary] = None
        self.last_error: Optional[PersistenceError] = None

    def add_listener(self, listener: FrameListener) -> None:
        self._listeners.append(listener)

    def _emit(self, result: FrameResult) -> None:
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception:
                logger.exception("Frame listener failed for session %s", self.session_id)

    def run(
        self,
        frames: Iterable[Optional[KeypointSnapshot]],
        stop_event: Optional[threading.Event] = None,
    ) -> List[FrameResult]:
        """Process ``frames`` until they run out, ``stop_event`` is set or the session completes."""

        should_stop = stop_event.is_set if stop_event is not None else None
        results: List[FrameResult] = []
        for result in stream_session(self.session, frames, should_stop):
            results.append(result)
            self._emit(result)
        logger.info(
            "Session %s processed %d frames (%d reps)",
            self.session_id,
            len(results),
            self.session.rep_count,
        )
        return results

    def finalize(self, feedback: SubjectiveFeedback) -> SessionSummary:
        """Close the session and keep its summary pending until persisted."""

        summary = self.session.finalize_session(feedback)
        if self.delivered is None:
            self._pending = summary
        return summary

    @property
    def pending_summary(self) -> Optional[SessionSummary]:
        return self._pending

    def offer_summary(self, persist: PersistCallback, *, raise_on_error: bool = False) -> bool:
        """Hand the pending summary payload to ``persist``.

        On failure the error is logged, stored in ``last_error`` and the
        summary stays pending so it can be offered again. Returns ``True``
        once the payload has been accepted.
        """

        if self._pending is None:
            if self.delivered is not None:
                return True
            raise ValueError("No summary to persist; call finalize() first")

        payload = self._pending.to_payload()
        try:
            persist(payload)
        except Exception as exc:
            error = PersistenceError(f"Could not persist summary for session {self.session_id}: {exc}")
            self.last_error = error
            logger.warning("Summary for session %s not persisted: %s", self.session_id, exc)
            if raise_on_error:
                raise error from exc
            return False

        self.delivered = self._pending
        self._pending = None
        self.last_error = None
        logger.info("Summary for session %s persisted", self.session_id)
        return True

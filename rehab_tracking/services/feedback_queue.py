from __future__ import annotations

import logging
from dataclasses import dataclass
from queue import Empty, SimpleQueue
from typing import Callable, List, Optional

from rehab_tracking.C_analysis.streaming import FrameResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameUpdate:
    """Mensaje por fotograma que consume la interfaz."""

    session_id: str
    phase: str
    rep_count: int
    feedback_text: str
    form_flags: tuple[str, ...] = ()
    session_complete: bool = False


def make_feedback_callback(queue: SimpleQueue, session_id: str) -> Callable[[FrameResult], None]:
    def _cb(result: FrameResult) -> None:
        try:
            queue.put(
                FrameUpdate(
                    session_id=session_id,
                    phase=result.phase.value,
                    rep_count=int(result.rep_count),
                    feedback_text=result.feedback_text,
                    form_flags=tuple(result.form_flags),
                    session_complete=result.session_complete,
                )
            )
        except Exception:
            # no romper el bucle de seguimiento por errores de UI/cola
            logger.exception("Could not enqueue frame update for session %s", session_id)

    return _cb


def drain_updates(queue: SimpleQueue, session_id: Optional[str] = None) -> List[FrameUpdate]:
    """
    Vacía la cola y devuelve las actualizaciones de ``session_id`` en orden.
    Los mensajes de otras sesiones (p. ej. una sesión ya cancelada) se descartan.
    """
    updates: List[FrameUpdate] = []
    while True:
        try:
            update = queue.get_nowait()
        except Empty:
            break
        if session_id is not None and update.session_id != session_id:
            continue
        updates.append(update)
    return updates

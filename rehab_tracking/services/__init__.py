"""Capa de servicio: orquestación de sesiones y cola de actualizaciones para la UI."""

from .feedback_queue import FrameUpdate, drain_updates, make_feedback_callback
from .session_service import SessionService

__all__ = ["FrameUpdate", "SessionService", "drain_updates", "make_feedback_callback"]

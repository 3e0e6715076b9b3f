"""Resumen analítico de sesiones."""

from .session_summary import SessionSummary, SessionSummaryBuilder, SubjectiveFeedback

__all__ = ["SessionSummary", "SessionSummaryBuilder", "SubjectiveFeedback"]

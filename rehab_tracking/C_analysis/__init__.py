"""Análisis de cada fotograma: forma, conteo de repeticiones y sesión en streaming.

``streaming`` y ``replay`` dependen del resumen de sesión y se importan
directamente desde sus módulos."""

from .form_evaluation import FormEvaluator, FormFlag, FormVerdict
from .repetition_counter import (
    PhaseTransitionEvent,
    RepEvent,
    RepetitionStateMachine,
    SessionCompleteEvent,
)

__all__ = [
    "FormEvaluator",
    "FormFlag",
    "FormVerdict",
    "PhaseTransitionEvent",
    "RepEvent",
    "RepetitionStateMachine",
    "SessionCompleteEvent",
]

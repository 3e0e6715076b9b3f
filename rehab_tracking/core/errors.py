"""Excepciones específicas del dominio utilizadas por el motor de seguimiento.

Las incidencias de un fotograma (articulaciones sin resolver, geometría
degenerada, historial insuficiente) no son excepciones: se absorben y se
reportan como :class:`~rehab_tracking.core.types.TrackingIssue`. Aquí solo
viven los fallos que el llamador debe tratar."""


class TrackingError(Exception):
    """Excepción base del motor de seguimiento."""


class ExerciseConfigError(TrackingError, ValueError):
    """Se lanza al cargar un ejercicio cuya definición es incompleta o incoherente."""


class SessionFinalizedError(TrackingError):
    """Se lanza al enviar fotogramas a una sesión que ya fue cerrada."""


class PersistenceError(TrackingError):
    """Envuelve un fallo del colaborador de persistencia al guardar un resumen."""

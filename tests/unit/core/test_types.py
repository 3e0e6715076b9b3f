"""Pruebas de normalización de etiquetas y de la jerarquía de errores."""

from __future__ import annotations

import pytest

from rehab_tracking.core.errors import ExerciseConfigError, PersistenceError, SessionFinalizedError, TrackingError
from rehab_tracking.core.types import Phase, TrackingMode, as_phase, as_tracking_mode


@pytest.mark.parametrize(
    "label, expected",
    [
        ("extended", Phase.EXTENDED),
        (" Flexed ", Phase.FLEXED),
        ("up", Phase.FLEXED),
        ("down", Phase.EXTENDED),
        ("start", Phase.EXTENDED),
        ("mid", Phase.FLEXED),
        (Phase.FLEXED, Phase.FLEXED),
    ],
)
def test_as_phase_aliases(label, expected) -> None:
    assert as_phase(label) is expected


def test_as_phase_rejects_unknown_labels() -> None:
    with pytest.raises(ValueError, match="sideways"):
        as_phase("sideways")


def test_as_tracking_mode() -> None:
    assert as_tracking_mode("Motion") is TrackingMode.MOTION
    assert as_tracking_mode(TrackingMode.ANGLE) is TrackingMode.ANGLE
    assert as_tracking_mode(None) is None
    assert as_tracking_mode("") is None
    with pytest.raises(ValueError):
        as_tracking_mode("sonar")


def test_error_hierarchy() -> None:
    assert issubclass(ExerciseConfigError, TrackingError)
    assert issubclass(ExerciseConfigError, ValueError)
    assert issubclass(SessionFinalizedError, TrackingError)
    assert issubclass(PersistenceError, TrackingError)

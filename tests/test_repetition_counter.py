"""Pruebas unitarias de la máquina de estados de repeticiones."""

from __future__ import annotations

import pytest

from rehab_tracking.B_tracking.tracking_state import TrackingState
from rehab_tracking.C_analysis.form_evaluation import FormFlag, FormVerdict
from rehab_tracking.C_analysis.repetition_counter import (
    PhaseTransitionEvent,
    RepEvent,
    RepetitionStateMachine,
    SessionCompleteEvent,
)
from rehab_tracking.config import CountingConfig
from rehab_tracking.config.exercises import JointRoleSpec
from rehab_tracking.core.types import FormQuality, Phase

SQUAT = JointRoleSpec(pivot="left_knee", proximal="left_hip", distal="left_ankle", start_angle=160, mid_angle=90)


def _make_machine(target_reps: int = 10, completion_delay: float = 0.6, **overrides) -> RepetitionStateMachine:
    cfg = CountingConfig()
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return RepetitionStateMachine(
        SQUAT, TrackingState(), cfg, target_reps=target_reps, completion_delay=completion_delay
    )


def _feed(machine: RepetitionStateMachine, angles, step: float = 0.5):
    """Devuelve los índices de muestra en los que se emitió una repetición."""
    rep_indices = []
    for idx, angle in enumerate(angles):
        events = machine.update_angle(angle, idx * step)
        if any(isinstance(e, RepEvent) for e in events):
            rep_indices.append(idx)
    return rep_indices


def test_scripted_sequence_counts_on_return_to_start() -> None:
    """La secuencia de ejemplo produce una repetición, anclada al 5º valor."""
    machine = _make_machine()
    rep_indices = _feed(machine, [170, 160, 90, 85, 170, 165, 92, 88])

    assert rep_indices == [4]
    assert machine.rep_count == 1
    assert machine.phase is Phase.FLEXED


def test_trailing_return_completes_second_rep() -> None:
    machine = _make_machine()
    rep_indices = _feed(machine, [170, 160, 90, 85, 170, 165, 92, 88, 170])

    assert rep_indices == [4, 8]
    assert machine.rep_count == 2


def test_dead_zone_and_missing_angles_do_not_transition() -> None:
    machine = _make_machine()
    assert machine.update_angle(120.0, 0.0) == []
    assert machine.update_angle(None, 0.1) == []
    assert machine.update_angle(float("nan"), 0.2) == []
    assert machine.phase is Phase.EXTENDED


def test_every_transition_emits_phase_event() -> None:
    machine = _make_machine()
    down = machine.update_angle(80.0, 1.0)
    up = machine.update_angle(170.0, 2.0)

    assert down == [PhaseTransitionEvent(Phase.EXTENDED, Phase.FLEXED, 1.0)]
    assert isinstance(up[0], PhaseTransitionEvent)
    assert up[0].to_phase is Phase.EXTENDED
    assert isinstance(up[1], RepEvent)
    assert up[1].repetition_index == 1
    assert up[1].transition == up[0]


def test_cooldown_suppresses_second_rep() -> None:
    """Dos transiciones válidas separadas menos de 400 ms cuentan una sola vez."""
    machine = _make_machine()
    timeline = [(80.0, 0.0), (170.0, 0.1), (80.0, 0.2), (170.0, 0.3)]
    reps = []
    for angle, ts in timeline:
        reps.extend(e for e in machine.update_angle(angle, ts) if isinstance(e, RepEvent))

    assert len(reps) == 1
    assert machine.rep_count == 1
    # La transición suprimida sí cambia la fase.
    assert machine.phase is Phase.EXTENDED

    machine.update_angle(80.0, 0.6)
    late = machine.update_angle(170.0, 0.7)
    assert any(isinstance(e, RepEvent) for e in late)
    assert machine.rep_count == 2


def test_rep_count_is_monotonic() -> None:
    machine = _make_machine(target_reps=3)
    counts = []
    for idx, angle in enumerate([170, 80, 170, 120, 80, 170, 100, 170, 80, 170] * 2):
        machine.update_angle(angle, idx * 0.3)
        counts.append(machine.rep_count)
    assert counts == sorted(counts)


def test_rep_event_carries_form_verdict() -> None:
    machine = _make_machine()
    verdict = FormVerdict(
        quality=FormQuality.NEEDS_WORK,
        suggestion="Keep your back straight and chest up",
        flags=(FormFlag("trunk_posture", "Keep your back straight and chest up", FormQuality.NEEDS_WORK, 40.0),),
    )
    machine.update_angle(80.0, 0.0, verdict)
    events = machine.update_angle(170.0, 1.0, verdict)

    rep = events[-1]
    assert isinstance(rep, RepEvent)
    assert rep.form_quality is FormQuality.NEEDS_WORK
    assert rep.form_verdict.flag_names() == ("trunk_posture",)


def test_completion_is_signalled_once_after_delay() -> None:
    machine = _make_machine(target_reps=1, completion_delay=0.6)
    machine.update_angle(80.0, 0.0)
    machine.update_angle(170.0, 1.0)

    assert machine.poll_completion(1.3) is None
    event = machine.poll_completion(1.6)
    assert event == SessionCompleteEvent(rep_count=1, target_reps=1, timestamp=1.6)
    assert machine.poll_completion(2.0) is None


def test_machine_keeps_counting_after_target() -> None:
    machine = _make_machine(target_reps=1)
    _feed(machine, [80, 170, 80, 170])
    assert machine.rep_count == 2
    assert machine.state.completion_due_at == pytest.approx(0.5 + 0.6)


def test_motion_path_uses_same_convention() -> None:
    machine = RepetitionStateMachine(None, TrackingState(), target_reps=5, completion_delay=0.3)
    assert machine.update_phase("up", 0.0)[0].to_phase is Phase.FLEXED
    events = machine.update_phase(Phase.EXTENDED, 1.0)
    assert [type(e) for e in events] == [PhaseTransitionEvent, RepEvent]


def test_extended_without_visiting_flexed_does_not_count() -> None:
    machine = RepetitionStateMachine(None, TrackingState(), target_reps=5, completion_delay=0.3)
    machine.state.phase = Phase.FLEXED
    events = machine.update_phase(Phase.EXTENDED, 0.0)
    assert [type(e) for e in events] == [PhaseTransitionEvent]
    assert machine.rep_count == 0


def test_unresolved_streak_reaches_reposition_limit() -> None:
    machine = _make_machine()
    assert machine.register_unresolved() is False
    assert machine.register_unresolved() is False
    assert machine.register_unresolved() is True
    machine.update_angle(170.0, 0.0)
    assert machine.state.unresolved_streak == 0


def test_invalid_target_is_rejected() -> None:
    with pytest.raises(ValueError):
        _make_machine(target_reps=0)


def test_motion_reps_without_verdict_are_not_evaluated() -> None:
    machine = RepetitionStateMachine(None, TrackingState(), target_reps=5, completion_delay=0.3)
    machine.update_phase(Phase.FLEXED, 0.0)
    rep = machine.update_phase(Phase.EXTENDED, 1.0)[-1]

    assert isinstance(rep, RepEvent)
    assert rep.form_verdict is None
    assert rep.form_quality is None
    assert not rep.form_evaluated

"""Pruebas del resolvedor de roles articulares y de su tabla de sustitución."""

from __future__ import annotations

from rehab_tracking.A_pose_input.joint_resolver import (
    JOINT_FALLBACKS,
    ResolvedJoints,
    Unresolved,
    count_visible,
    pick_side,
    resolve,
)
from rehab_tracking.A_pose_input.types import KeypointSnapshot
from rehab_tracking.config import ResolverConfig
from rehab_tracking.config.constants import ESSENTIAL_JOINTS
from rehab_tracking.config.exercises import JointRoleSpec

FINGER_ROLES = JointRoleSpec(
    pivot="left_wrist", proximal="left_elbow", distal="left_index", start_angle=160, mid_angle=120
)
SQUAT_ROLES = JointRoleSpec(
    pivot="left_knee", proximal="left_hip", distal="left_ankle", start_angle=160, mid_angle=90
)


def _snapshot(points: dict[str, tuple[float, float, float]]) -> KeypointSnapshot:
    return KeypointSnapshot.from_keypoints(
        [{"name": n, "x": x, "y": y, "score": s} for n, (x, y, s) in points.items()], timestamp=0.0
    )


def test_resolves_all_roles_without_substitution(make_snapshot) -> None:
    result = resolve(make_snapshot(), SQUAT_ROLES)

    assert isinstance(result, ResolvedJoints)
    assert result.pivot.name == "left_knee"
    assert result.proximal.name == "left_hip"
    assert result.distal.name == "left_ankle"
    assert result.substituted == ()
    assert not result.used_fallback


def test_missing_fingertip_falls_back_to_wrist() -> None:
    """Sin índice, el rol distal se resuelve con la muñeca si supera el umbral."""
    roles = JointRoleSpec(
        pivot="left_elbow", proximal="left_shoulder", distal="left_index", start_angle=150, mid_angle=50
    )
    snapshot = _snapshot(
        {
            "left_shoulder": (200.0, 150.0, 0.8),
            "left_elbow": (200.0, 230.0, 0.8),
            "left_wrist": (200.0, 300.0, 0.5),
        }
    )

    result = resolve(snapshot, roles)

    assert isinstance(result, ResolvedJoints)
    assert result.distal.name == "left_wrist"
    assert result.substituted == ("distal",)


def test_fingertip_and_wrist_missing_is_unresolved() -> None:
    snapshot = _snapshot({"left_elbow": (200.0, 230.0, 0.8)})

    result = resolve(snapshot, FINGER_ROLES)

    assert isinstance(result, Unresolved)
    assert "distal" in result.missing
    assert "pivot" in result.missing


def test_substitute_must_pass_same_threshold() -> None:
    snapshot = _snapshot(
        {
            "left_shoulder": (200.0, 150.0, 0.8),
            "left_elbow": (200.0, 230.0, 0.8),
            "left_wrist": (200.0, 300.0, 0.15),
        }
    )
    roles = JointRoleSpec(
        pivot="left_elbow", proximal="left_shoulder", distal="left_index", start_angle=150, mid_angle=50
    )

    result = resolve(snapshot, roles)

    assert isinstance(result, Unresolved)
    assert result.missing == ("distal",)


def test_pivot_uses_stricter_threshold(make_snapshot) -> None:
    """Una rodilla con confianza 0.25 vale como referencia pero no como pivote."""
    snapshot = make_snapshot(scores={"left_knee": 0.25})

    result = resolve(snapshot, SQUAT_ROLES)

    assert isinstance(result, Unresolved)
    assert result.missing == ("pivot",)

    relaxed = resolve(snapshot, SQUAT_ROLES, ResolverConfig(pivot_min_confidence=0.2))
    assert isinstance(relaxed, ResolvedJoints)


def test_threshold_is_strict(make_snapshot) -> None:
    snapshot = make_snapshot(scores={"left_hip": 0.2})
    assert isinstance(resolve(snapshot, SQUAT_ROLES), Unresolved)


def test_fallback_table_maps_hand_joints_to_wrists() -> None:
    for joint, substitute in JOINT_FALLBACKS.items():
        side = joint.split("_", 1)[0]
        assert substitute == f"{side}_wrist"


def test_pick_side_prefers_higher_summed_score(make_snapshot) -> None:
    right = make_snapshot(scores={"left_wrist": 0.3, "left_elbow": 0.3})
    assert pick_side(right, ("wrist", "elbow")) == "right"
    assert pick_side(make_snapshot(), ("wrist", "elbow")) == "left"


def test_count_visible_counts_confident_essential_joints(make_snapshot) -> None:
    snapshot = make_snapshot(exclude=("left_ankle", "right_ankle"), scores={"left_knee": 0.1})
    assert count_visible(snapshot, ESSENTIAL_JOINTS, 0.2) == 5

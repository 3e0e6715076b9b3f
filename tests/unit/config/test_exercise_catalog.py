"""Pruebas de validación del catálogo de ejercicios."""

from __future__ import annotations

import pytest

from rehab_tracking.config import ExerciseCatalog, default_catalog, load_catalog
from rehab_tracking.config.exercises import ExerciseDefinition, JointRoleSpec
from rehab_tracking.core.errors import ExerciseConfigError
from rehab_tracking.core.types import TrackingMode


def test_default_catalog_contents() -> None:
    catalog = default_catalog()

    assert set(catalog) == {"squat", "bicep_curl", "finger_flexion", "wrist_curl"}
    assert catalog["squat"].tracking_mode is TrackingMode.ANGLE
    assert catalog["wrist_curl"].tracking_mode is TrackingMode.MOTION
    assert catalog["wrist_curl"].roles is None
    assert catalog["finger_flexion"].fallback_roles is not None


def test_thresholds_include_tolerance() -> None:
    roles = JointRoleSpec("left_knee", "left_hip", "left_ankle", start_angle=160, mid_angle=90, tolerance=10)

    assert roles.extended_above == 150
    assert roles.flexed_below == 100
    assert roles.joint_names() == ("left_hip", "left_knee", "left_ankle")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"start_angle": 90, "mid_angle": 160},
        {"start_angle": 190, "mid_angle": 90},
        {"start_angle": 160, "mid_angle": 90, "tolerance": -1},
        {"start_angle": 170, "mid_angle": 150, "tolerance": 15},
        {"start_angle": 160, "mid_angle": 130, "tolerance": 15},
    ],
)
def test_invalid_angles_are_rejected(kwargs) -> None:
    with pytest.raises(ExerciseConfigError):
        JointRoleSpec("left_knee", "left_hip", "left_ankle", **kwargs)


def test_repeated_joint_roles_are_rejected() -> None:
    with pytest.raises(ExerciseConfigError):
        JointRoleSpec("left_knee", "left_knee", "left_ankle", start_angle=160, mid_angle=90)


def test_legacy_entry_format_is_accepted() -> None:
    exercise = ExerciseDefinition.from_mapping(
        {
            "_id": "knee_ext",
            "name": "Knee Extension",
            "targetBodyPart": "legs",
            "trackedJoints": {"p1": "left_hip", "p2": "left_knee", "p3": "left_ankle"},
            "repLogic": {"startAngle": 170, "midAngle": 100},
        }
    )

    assert exercise.exercise_id == "knee_ext"
    assert exercise.target_body_part == "legs"
    assert exercise.roles.pivot == "left_knee"
    assert exercise.roles.tolerance == 15.0


def test_missing_fields_are_reported_by_name() -> None:
    with pytest.raises(ExerciseConfigError, match="mid_angle"):
        ExerciseDefinition.from_mapping(
            {
                "id": "bad",
                "name": "Bad",
                "roles": {"pivot": "left_knee", "proximal": "left_hip", "distal": "left_ankle", "start_angle": 160},
            }
        )
    with pytest.raises(ExerciseConfigError, match="roles"):
        ExerciseDefinition.from_mapping({"id": "noroles", "name": "Leg Raise"})


def test_tracking_mode_is_inferred_from_name_or_body_part() -> None:
    by_name = ExerciseDefinition.from_mapping({"id": "w1", "name": "Wrist Extension"})
    by_part = ExerciseDefinition.from_mapping({"id": "w2", "name": "Hand Lift", "target_body_part": "Wrist"})

    assert by_name.tracking_mode is TrackingMode.MOTION
    assert by_part.tracking_mode is TrackingMode.MOTION


def test_unknown_tracking_mode_is_a_config_error() -> None:
    with pytest.raises(ExerciseConfigError):
        ExerciseDefinition.from_mapping({"id": "x", "name": "X", "tracking_mode": "sonar"})


def test_duplicate_ids_are_rejected() -> None:
    entry = {"id": "w1", "name": "Wrist Extension"}
    with pytest.raises(ExerciseConfigError):
        ExerciseCatalog.from_entries([entry, dict(entry)])


def test_unknown_exercise_raises_key_error() -> None:
    with pytest.raises(KeyError, match="nope"):
        default_catalog()["nope"]


def test_load_catalog_from_yaml(tmp_path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "exercises:\n"
        "  - id: lunge\n"
        "    name: Lunge\n"
        "    roles: {pivot: right_knee, proximal: right_hip, distal: right_ankle,\n"
        "            start_angle: 165, mid_angle: 95}\n",
        encoding="utf-8",
    )

    catalog = load_catalog(path, default_tolerance=10)

    assert list(catalog) == ["lunge"]
    assert catalog["lunge"].roles.extended_above == 155


def test_empty_catalog_file_is_rejected(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    with pytest.raises(ExerciseConfigError):
        load_catalog(path)

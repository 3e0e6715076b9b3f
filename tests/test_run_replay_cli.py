"""Pruebas del ejecutable de reproducción por línea de comandos."""

from __future__ import annotations

import json

import pytest

from rehab_tracking import run_replay

NO_ANKLES = ("left_ankle", "right_ankle")


@pytest.fixture
def curl_csv(tmp_path, landmark_frame):
    frames = [
        (idx * 0.5, {"elbow_angle": angle, "exclude": NO_ANKLES})
        for idx, angle in enumerate([170.0, 40.0, 170.0, 40.0, 170.0])
    ]
    path = tmp_path / "curl.csv"
    landmark_frame(frames).to_csv(path, index=False)
    return path


def _base_args(path, exercise="bicep_curl"):
    return [
        "--landmarks", str(path),
        "--exercise", exercise,
        "--target-reps", "2",
        "--pain", "3",
        "--difficulty", "4",
    ]


def test_cli_prints_summary_payload(curl_csv, tmp_path, capsys) -> None:
    trace_path = tmp_path / "trace.csv"

    code = run_replay.main(_base_args(curl_csv) + ["--notes", "sin molestias", "--trace", str(trace_path)])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["exerciseId"] == "bicep_curl"
    assert payload["repsCompleted"] == 2
    assert payload["patientFeedback"]["notes"] == "sin molestias"
    assert payload["analytics"]["completionPercentage"] == pytest.approx(100.0)
    assert payload["analytics"]["targetReps"] == 2
    assert trace_path.is_file()


def test_cli_unknown_exercise_exits_with_code_2(curl_csv, capsys) -> None:
    code = run_replay.main(_base_args(curl_csv, exercise="jumping_jacks"))

    assert code == 2
    assert capsys.readouterr().out == ""


def test_cli_rejects_out_of_range_pain(curl_csv) -> None:
    args = _base_args(curl_csv)
    args[args.index("--pain") + 1] = "11"

    with pytest.raises(SystemExit) as excinfo:
        run_replay.main(args)
    assert excinfo.value.code == 2


def test_cli_reports_missing_csv(tmp_path) -> None:
    with pytest.raises(SystemExit):
        run_replay.main(_base_args(tmp_path / "missing.csv"))

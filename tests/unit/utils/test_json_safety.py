from __future__ import annotations

import json
from dataclasses import dataclass

import numpy as np

from rehab_tracking.core.types import Phase
from rehab_tracking.utils.json_safety import json_safe


@dataclass
class _Point:
    x: float
    phase: Phase


def test_json_safe_converts_numpy_enums_and_non_finite() -> None:
    payload = {
        "count": np.int64(3),
        "score": np.float32(0.5),
        "series": np.array([1.0, np.nan]),
        "phase": Phase.FLEXED,
        "missing": float("inf"),
        1: (np.bool_(True), {"nested": np.nan}),
    }

    safe = json_safe(payload)

    assert safe == {
        "count": 3,
        "score": 0.5,
        "series": [1.0, None],
        "phase": "flexed",
        "missing": None,
        "1": [True, {"nested": None}],
    }
    json.dumps(safe, allow_nan=False)


def test_json_safe_expands_dataclasses() -> None:
    assert json_safe(_Point(x=np.float64(2.0), phase=Phase.EXTENDED)) == {"x": 2.0, "phase": "extended"}

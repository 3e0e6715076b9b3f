"""Utilities to guarantee strict JSON-serializable payloads."""

from __future__ import annotations

import math
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any

import numpy as np


def json_safe(value: Any) -> Any:
    """Recursively convert ``value`` into a JSON-serializable structure.

    - NumPy scalars/arrays are converted to Python types/lists.
    - ``Enum`` members become their value and dataclasses become dicts.
    - Non-finite floats (NaN/Inf) are converted to ``None``.
    - Mapping keys are stringified to avoid invalid JSON objects.
    """

    if isinstance(value, Enum):
        return json_safe(value.value)

    if value is None or isinstance(value, (str, bool)):
        return value

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value

    if isinstance(value, np.generic):
        return json_safe(value.item())

    if isinstance(value, np.ndarray):
        return [json_safe(v) for v in value.tolist()]

    if is_dataclass(value) and not isinstance(value, type):
        return json_safe(asdict(value))

    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [json_safe(v) for v in value]

    return value

"""Utilidades geométricas sobre keypoints 2D."""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from .types import Keypoint, PointLike


def as_xy(point: PointLike) -> Tuple[float, float]:
    """Coordenadas ``(x, y)`` de un :class:`Keypoint` o de una tupla."""
    if isinstance(point, Keypoint):
        return point.xy
    return float(point[0]), float(point[1])


def is_degenerate(a: PointLike, b: PointLike, c: PointLike) -> bool:
    """Indica si alguno de los rayos ``b→a`` o ``b→c`` tiene longitud nula."""

    ax, ay = as_xy(a)
    bx, by = as_xy(b)
    cx, cy = as_xy(c)
    return math.hypot(ax - bx, ay - by) == 0 or math.hypot(cx - bx, cy - by) == 0


def angle_at(a: PointLike, b: PointLike, c: PointLike) -> float:
    """Calcula el ángulo en el vértice ``b`` formado por ``a-b-c``, en grados.

    El resultado está en ``[0, 180]``. El coseno se recorta a ``[-1, 1]`` para
    absorber la deriva de coma flotante antes del ``acos``. Si ``a`` o ``c``
    coinciden con ``b`` se devuelve exactamente ``0.0``.
    """

    ax, ay = as_xy(a)
    bx, by = as_xy(b)
    cx, cy = as_xy(c)
    v1x, v1y = ax - bx, ay - by
    v2x, v2y = cx - bx, cy - by

    mag1 = math.hypot(v1x, v1y)
    mag2 = math.hypot(v2x, v2y)
    if mag1 == 0 or mag2 == 0:
        return 0.0

    cos_theta = (v1x * v2x + v1y * v2y) / (mag1 * mag2)
    cos_theta = max(-1.0, min(1.0, cos_theta))
    return math.degrees(math.acos(cos_theta))


def midpoint(a: PointLike, b: PointLike) -> Tuple[float, float]:
    """Punto medio entre ``a`` y ``b``."""

    ax, ay = as_xy(a)
    bx, by = as_xy(b)
    return (ax + bx) * 0.5, (ay + by) * 0.5


def angle_abc_deg(
    ax: np.ndarray,
    ay: np.ndarray,
    bx: np.ndarray,
    by: np.ndarray,
    cx: np.ndarray,
    cy: np.ndarray,
) -> np.ndarray:
    """Calcula en vector el ángulo ABC en grados para cada fila de datos.

    Sigue la misma política que :func:`angle_at`: las filas degeneradas valen
    ``0`` y las filas con coordenadas no finitas quedan en ``NaN``.
    """

    v1x, v1y = ax - bx, ay - by
    v2x, v2y = cx - bx, cy - by
    dot = v1x * v2x + v1y * v2y
    denom = np.hypot(v1x, v1y) * np.hypot(v2x, v2y)
    with np.errstate(invalid="ignore", divide="ignore"):
        cos = np.where(denom > 0, dot / np.where(denom > 0, denom, 1.0), np.nan)
    cos = np.clip(cos, -1.0, 1.0)
    angles = np.degrees(np.arccos(cos))
    return np.where(denom == 0, 0.0, angles)


__all__ = ["angle_abc_deg", "angle_at", "as_xy", "is_degenerate", "midpoint"]

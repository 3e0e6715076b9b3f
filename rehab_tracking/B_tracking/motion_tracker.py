"""Estimación de fase a partir del historial de posiciones de un punto seguido.

Se usa para ejercicios en los que el ángulo articular es poco fiable (muñeca):
en lugar de un ángulo se sigue la coordenada vertical del punto y, si está
disponible, su desplazamiento respecto a un ancla (el codo).

Reglas:

- Con ancla confiable se clasifica por el desplazamiento ``point.y - anchor.y``
  con histéresis (umbral de extensión por encima del de flexión).
- Sin ancla se usa la velocidad del historial, pero solo cuando la amplitud de
  la ventana demuestra que hay movimiento real.
- En cualquier otro caso se mantiene la última fase conocida.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from rehab_tracking.A_pose_input.types import PointLike
from rehab_tracking.A_pose_input.geometry import as_xy
from rehab_tracking.config import models
from rehab_tracking.core.types import Phase, TrackingIssue

from .tracking_state import TrackingState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhaseEstimate:
    """Resultado de una actualización del seguidor de movimiento."""

    phase: Phase
    smoothed: Optional[float]
    velocity: float
    amplitude: float
    source: str
    issue: Optional[TrackingIssue] = None


class MotionTracker:
    """Clasificador de fase basado en historial con suavizado e histéresis."""

    def __init__(self, state: TrackingState, cfg: models.MotionConfig | None = None) -> None:
        self.state = state
        self.cfg = cfg or models.MotionConfig()
        if self.cfg.extended_offset <= self.cfg.flexed_offset:
            raise ValueError(
                "extended_offset must be greater than flexed_offset "
                f"({self.cfg.extended_offset} <= {self.cfg.flexed_offset})"
            )

    # --- Estadísticos de la ventana ------------------------------------------
    def _window(self) -> np.ndarray:
        return np.fromiter(self.state.history, dtype=float, count=len(self.state.history))

    def smoothed(self) -> Optional[float]:
        """Media de las últimas ``smoothing_window`` muestras (menos si no hay)."""
        values = self._window()
        if values.size == 0:
            return None
        return float(values[-self.cfg.smoothing_window :].mean())

    def amplitude(self) -> float:
        """Rango ``max - min`` de todo el historial."""
        values = self._window()
        if values.size == 0:
            return 0.0
        return float(np.ptp(values))

    def _estimate(self, phase: Phase, source: str, issue: Optional[TrackingIssue] = None) -> PhaseEstimate:
        return PhaseEstimate(
            phase=phase,
            smoothed=self.smoothed(),
            velocity=self.state.last_velocity,
            amplitude=self.amplitude(),
            source=source,
            issue=issue,
        )

    # --- Actualización ---------------------------------------------------------
    def update(
        self,
        point: Optional[PointLike],
        confidence: float,
        anchor: Optional[PointLike] = None,
        anchor_confidence: float = 0.0,
    ) -> PhaseEstimate:
        """Incorpora una nueva posición y devuelve la fase candidata.

        Una actualización con ``confidence`` por debajo de ``min_confidence`` no
        toca el historial y conserva la fase."""

        held = self.state.phase
        if point is None or not confidence > self.cfg.min_confidence:
            return self._estimate(held, "hold", TrackingIssue.UNRESOLVED_JOINTS)

        _, y = as_xy(point)
        if not np.isfinite(y):
            return self._estimate(held, "hold", TrackingIssue.UNRESOLVED_JOINTS)

        previous = self.state.history[-1] if self.state.history else None
        self.state.push(y)
        self.state.last_velocity = 0.0 if previous is None else y - previous

        if anchor is not None and anchor_confidence > self.cfg.anchor_min_confidence:
            _, anchor_y = as_xy(anchor)
            offset = y - anchor_y
            if offset > self.cfg.extended_offset:
                return self._estimate(Phase.EXTENDED, "anchor")
            if offset < self.cfg.flexed_offset:
                return self._estimate(Phase.FLEXED, "anchor")
            return self._estimate(held, "anchor")

        if len(self.state.history) < 2:
            return self._estimate(held, "hold", TrackingIssue.STALE_HISTORY)
        if self.amplitude() < self.cfg.min_amplitude:
            return self._estimate(held, "hold")

        velocity = self.state.last_velocity
        # Eje y hacia abajo: velocidad negativa = el punto sube (flexión).
        if velocity < -self.cfg.min_velocity:
            return self._estimate(Phase.FLEXED, "velocity")
        if velocity > self.cfg.min_velocity:
            return self._estimate(Phase.EXTENDED, "velocity")
        return self._estimate(held, "velocity")


__all__ = ["MotionTracker", "PhaseEstimate"]

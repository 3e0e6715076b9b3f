"""Estado mutable de seguimiento que pertenece a una única sesión."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional

from rehab_tracking.config.settings import HISTORY_CAPACITY
from rehab_tracking.core.types import Phase


@dataclass
class TrackingState:
    """Historial de posiciones y contadores de una sesión de ejercicio.

    Se crea al iniciar la sesión y no se comparte: el seguidor de movimiento y
    la máquina de estados lo reciben explícitamente en lugar de depender de
    variables globales."""

    capacity: int = HISTORY_CAPACITY
    history: Deque[float] = field(init=False)
    last_velocity: float = 0.0
    phase: Phase = Phase.EXTENDED
    visited_active: bool = False
    last_count_ts: Optional[float] = None
    rep_count: int = 0
    unresolved_streak: int = 0
    completion_due_at: Optional[float] = None
    completion_signalled: bool = False
    tracked_side: Optional[str] = None
    side_challenge_streak: int = 0

    def __post_init__(self) -> None:
        if self.capacity < 2:
            raise ValueError(f"History capacity must be >= 2, got {self.capacity}")
        self.history = deque(maxlen=int(self.capacity))

    def push(self, position: float) -> None:
        """Añade una posición al *ring buffer* descartando la más antigua."""
        self.history.append(float(position))

    def reset_history(self) -> None:
        """Vacía el historial (p. ej. al cambiar de lado seguido)."""
        self.history.clear()
        self.last_velocity = 0.0

"""Tipos ligeros que describen los keypoints entregados por el colaborador de pose."""

from __future__ import annotations

import math
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Optional, Tuple, Union

PointLike = Union["Keypoint", Tuple[float, float]]


@dataclass(frozen=True)
class Keypoint:
    """Landmark anatómico con posición en píxeles y confianza en ``[0, 1]``."""

    name: str
    x: float
    y: float
    score: float = 1.0

    @property
    def xy(self) -> Tuple[float, float]:
        """Coordenadas ``(x, y)`` en píxeles."""

        return float(self.x), float(self.y)

    def is_confident(self, threshold: float) -> bool:
        """Indica si la confianza supera estrictamente ``threshold``."""

        return math.isfinite(self.x) and math.isfinite(self.y) and self.score > threshold

    def to_dict(self) -> dict[str, Any]:
        """Exporta el keypoint a un diccionario simple."""

        return {"name": self.name, "x": float(self.x), "y": float(self.y), "score": float(self.score)}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], name: Optional[str] = None) -> "Keypoint":
        """Crea un ``Keypoint`` desde un diccionario ``{name, x, y, score}``.

        Un ``score`` ausente (``None``) se interpreta como confianza nula, igual
        que hace el detector cuando no puede puntuar el landmark."""

        score = data.get("score")
        return cls(
            name=str(name if name is not None else data["name"]),
            x=float(data.get("x", math.nan)),
            y=float(data.get("y", math.nan)),
            score=float(score) if score is not None else 0.0,
        )


@dataclass(frozen=True)
class KeypointSnapshot(Mapping[str, Keypoint]):
    """Instantánea inmutable de todos los keypoints detectados en un fotograma.

    Se comporta como ``Mapping`` de nombre de articulación a :class:`Keypoint`;
    la ausencia de una articulación es normal y no un error."""

    keypoints: Mapping[str, Keypoint]
    timestamp: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keypoints", MappingProxyType(dict(self.keypoints)))

    def __getitem__(self, key: str) -> Keypoint:
        return self.keypoints[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.keypoints)

    def __len__(self) -> int:
        return len(self.keypoints)

    def __hash__(self) -> int:
        return hash((tuple(sorted(self.keypoints.items())), self.timestamp))

    def confident(self, name: str, threshold: float) -> Optional[Keypoint]:
        """Devuelve el keypoint ``name`` si existe y supera ``threshold``."""

        kp = self.keypoints.get(name)
        if kp is not None and kp.is_confident(threshold):
            return kp
        return None

    @classmethod
    def from_keypoints(
        cls,
        keypoints: Union[Iterable[Mapping[str, Any] | Keypoint], Mapping[str, Any]],
        *,
        timestamp: Optional[float] = None,
    ) -> "KeypointSnapshot":
        """Construye una instantánea desde la salida del detector.

        Acepta una lista de diccionarios ``{name, x, y, score}`` (formato MoveNet),
        una lista de :class:`Keypoint` o un ``Mapping`` nombre → datos. Las
        entradas sin nombre se descartan."""

        items: dict[str, Keypoint] = {}
        if isinstance(keypoints, Mapping):
            for name, data in keypoints.items():
                kp = data if isinstance(data, Keypoint) else Keypoint.from_mapping(data, name=name)
                items[str(name)] = kp
        else:
            for entry in keypoints:
                if isinstance(entry, Keypoint):
                    kp = entry
                else:
                    if not entry.get("name"):
                        continue
                    kp = Keypoint.from_mapping(entry)
                items[kp.name] = kp
        if timestamp is None:
            return cls(items)
        return cls(items, timestamp=float(timestamp))


__all__ = ["Keypoint", "KeypointSnapshot", "PointLike"]

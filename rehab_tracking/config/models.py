"""Modelos ``dataclass`` que describen la configuración del motor de seguimiento."""
from __future__ import annotations
from dataclasses import dataclass, field, is_dataclass
from enum import Enum
from typing import Any, Dict
import copy
import hashlib
import json

from .settings import (
    ANCHOR_MIN_CONFIDENCE,
    ANGLE_COMPLETION_DELAY_SEC,
    COMPLETION_FLOOR,
    COOLDOWN_SEC,
    DEFAULT_TOLERANCE_DEG,
    DEPTH_MARGIN_PX,
    ESSENTIAL_MIN_CONFIDENCE,
    EXTENDED_OFFSET_PX,
    FLEXED_OFFSET_PX,
    FORM_MIN_CONFIDENCE,
    HIGH_DIFFICULTY_LEVEL,
    HIGH_PAIN_LEVEL,
    HISTORY_CAPACITY,
    LATERAL_PAIR_MAX_PX,
    LOW_QUALITY_THRESHOLD,
    MIN_AMPLITUDE_PX,
    MIN_ESSENTIAL_JOINTS,
    MIN_VELOCITY_PX,
    MOTION_COMPLETION_DELAY_SEC,
    MOTION_MIN_CONFIDENCE,
    PIVOT_MIN_CONFIDENCE,
    REFERENCE_MIN_CONFIDENCE,
    REPOSITION_AFTER_FRAMES,
    SIDE_SWITCH_FRAMES,
    SMOOTHING_WINDOW,
    TRUNK_MAX_OFFSET_PX,
)


@dataclass
class ResolverConfig:
    """Umbrales de confianza para mapear roles a keypoints detectados."""
    pivot_min_confidence: float = PIVOT_MIN_CONFIDENCE
    reference_min_confidence: float = REFERENCE_MIN_CONFIDENCE
    min_essential_joints: int = MIN_ESSENTIAL_JOINTS
    essential_min_confidence: float = ESSENTIAL_MIN_CONFIDENCE


@dataclass
class MotionConfig:
    """Parámetros del seguidor de movimiento basado en historial de posiciones."""
    history_capacity: int = HISTORY_CAPACITY
    smoothing_window: int = SMOOTHING_WINDOW
    min_confidence: float = MOTION_MIN_CONFIDENCE
    anchor_min_confidence: float = ANCHOR_MIN_CONFIDENCE
    extended_offset: float = EXTENDED_OFFSET_PX
    flexed_offset: float = FLEXED_OFFSET_PX
    min_amplitude: float = MIN_AMPLITUDE_PX
    min_velocity: float = MIN_VELOCITY_PX
    side_switch_frames: int = SIDE_SWITCH_FRAMES


@dataclass
class CountingConfig:
    """Parámetros empleados por la máquina de estados de repeticiones."""
    default_tolerance: float = DEFAULT_TOLERANCE_DEG
    cooldown_sec: float = COOLDOWN_SEC
    angle_completion_delay_sec: float = ANGLE_COMPLETION_DELAY_SEC
    motion_completion_delay_sec: float = MOTION_COMPLETION_DELAY_SEC
    reposition_after_frames: int = REPOSITION_AFTER_FRAMES


@dataclass
class FormConfig:
    """Umbrales (en píxeles) de las comprobaciones de postura."""
    min_confidence: float = FORM_MIN_CONFIDENCE
    lateral_pair_max_px: float = LATERAL_PAIR_MAX_PX
    trunk_max_offset_px: float = TRUNK_MAX_OFFSET_PX
    depth_margin_px: float = DEPTH_MARGIN_PX


@dataclass
class SummaryConfig:
    """Reglas del resumen de sesión y de las recomendaciones."""
    low_quality_threshold: int = LOW_QUALITY_THRESHOLD
    high_pain_level: int = HIGH_PAIN_LEVEL
    high_difficulty_level: int = HIGH_DIFFICULTY_LEVEL
    completion_floor: float = COMPLETION_FLOOR


@dataclass
class Config:
    """Configuración de alto nivel consumida por una sesión de seguimiento."""
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    motion: MotionConfig = field(default_factory=MotionConfig)
    counting: CountingConfig = field(default_factory=CountingConfig)
    form: FormConfig = field(default_factory=FormConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)

    def copy(self) -> "Config":
        """Devuelve una copia profunda del objeto de configuración."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Entrega la configuración como diccionario de Python."""
        return _dataclass_to_dict(self)

    # --- Fingerprint -----------------------------------------------------------
    def fingerprint(self) -> str:
        """Calcula un hash SHA1 de los parámetros que afectan al conteo y la forma."""
        payload = {
            "resolver": _dataclass_to_dict(self.resolver),
            "motion": _dataclass_to_dict(self.motion),
            "counting": _dataclass_to_dict(self.counting),
            "form": _dataclass_to_dict(self.form),
        }
        encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8")
        return hashlib.sha1(encoded).hexdigest()


# --- Internal utilities -------------------------------------------------------

def _dataclass_to_dict(obj: Any) -> Any:
    """Convierte recursivamente ``dataclasses`` (y anidados) en diccionarios."""
    if is_dataclass(obj):
        return {key: _dataclass_to_dict(value) for key, value in obj.__dict__.items()}
    if isinstance(obj, dict):
        return {key: _dataclass_to_dict(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_dataclass_to_dict(value) for value in obj]
    if isinstance(obj, Enum):
        return obj.value
    return obj


def _update_dataclass(instance: Any, updates: Dict[str, Any]) -> Any:
    """Actualiza recursivamente ``instance`` respetando los límites de cada ``dataclass``."""
    for key, value in updates.items():
        if not hasattr(instance, key):
            continue
        current = getattr(instance, key)
        if is_dataclass(current) and isinstance(value, dict):
            _update_dataclass(current, value)
        else:
            setattr(instance, key, value)
    return instance

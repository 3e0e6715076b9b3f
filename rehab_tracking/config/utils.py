"""Utilidades para cargar configuraciones por defecto o desde archivos YAML.

Los valores de un YAML se mezclan sobre los valores base: las claves ausentes
conservan el valor por defecto y las desconocidas se ignoran."""
from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .models import Config, _update_dataclass

logger = logging.getLogger(__name__)


def load_default() -> Config:
    """Obtener la configuración por defecto del motor de seguimiento."""
    return Config()


def from_yaml(path: str | Path) -> Config:
    """Cargar una configuración desde un YAML y mezclarla con los valores base."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    cfg = load_default()
    _update_dataclass(cfg, data)
    logger.debug("Loaded configuration from %s (sha1=%s)", path, cfg.fingerprint())
    return cfg

"""Reexportaciones para poder usar ``from rehab_tracking import config``."""

from __future__ import annotations

# Dataclasses principales de configuración --------------------------------------
from .models import (
    Config,
    CountingConfig,
    FormConfig,
    MotionConfig,
    ResolverConfig,
    SummaryConfig,
)

# Funciones auxiliares de carga --------------------------------------------------
from .utils import from_yaml, load_default

# Catálogo de ejercicios ---------------------------------------------------------
from .exercises import (
    ExerciseCatalog,
    ExerciseDefinition,
    JointRoleSpec,
    default_catalog,
    load_catalog,
)

# Constantes compartidas ---------------------------------------------------------
from .constants import APP_NAME, ESSENTIAL_JOINTS

__all__ = [
    "APP_NAME",
    "Config",
    "CountingConfig",
    "ESSENTIAL_JOINTS",
    "ExerciseCatalog",
    "ExerciseDefinition",
    "FormConfig",
    "JointRoleSpec",
    "MotionConfig",
    "ResolverConfig",
    "SummaryConfig",
    "default_catalog",
    "from_yaml",
    "load_catalog",
    "load_default",
]

"""Motor de conteo de repeticiones y seguimiento de forma para rehabilitación."""

__version__ = "0.1.0"

"""Tipos y excepciones compartidos por todas las etapas del motor."""

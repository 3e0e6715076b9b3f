"""Parámetros por defecto del seguimiento de repeticiones y de la evaluación de forma."""

from __future__ import annotations

# --- RESOLUCIÓN DE ARTICULACIONES ---
# Confianza mínima para aceptar la articulación pivote (el vértice del ángulo).
# Es la más crítica: un vértice ruidoso desplaza ambos rayos a la vez.
PIVOT_MIN_CONFIDENCE = 0.3

# Confianza mínima para las articulaciones de referencia (extremos del ángulo).
REFERENCE_MIN_CONFIDENCE = 0.2

# Número mínimo de articulaciones esenciales (hombros, caderas, rodillas,
# tobillos) visibles para intentar cualquier análisis del fotograma.
MIN_ESSENTIAL_JOINTS = 4
ESSENTIAL_MIN_CONFIDENCE = 0.2

# --- SEGUIMIENTO POR MOVIMIENTO ---
# Capacidad del *ring buffer* de posiciones (≈1 s a 30 FPS).
HISTORY_CAPACITY = 30

# Muestras usadas en la media móvil de la posición suavizada.
SMOOTHING_WINDOW = 5

# Por debajo de esta confianza el punto seguido no actualiza el historial.
MOTION_MIN_CONFIDENCE = 0.25
ANCHOR_MIN_CONFIDENCE = 0.25

# Umbrales de histéresis sobre el desplazamiento vertical (píxeles) del punto
# respecto al ancla; negativo significa "por encima del ancla".
EXTENDED_OFFSET_PX = -10.0
FLEXED_OFFSET_PX = -24.0

# Amplitud mínima de la ventana para aceptar una transición por velocidad.
MIN_AMPLITUDE_PX = 22.0

# Velocidad mínima (píxeles por fotograma) para interpretar el sentido.
MIN_VELOCITY_PX = 0.5

# Fotogramas consecutivos en los que el otro lado debe puntuar más para
# cambiar el lado seguido; evita vaciar el historial por ruido de confianza.
SIDE_SWITCH_FRAMES = 5

# --- CONTEO ---
DEFAULT_TOLERANCE_DEG = 15.0
COOLDOWN_SEC = 0.4

# Retardo antes de señalar el fin de sesión para que el último feedback llegue
# antes; el camino por movimiento reacciona más rápido.
ANGLE_COMPLETION_DELAY_SEC = 0.6
MOTION_COMPLETION_DELAY_SEC = 0.3

# Fotogramas consecutivos sin articulaciones resueltas antes de pedir al
# paciente que se recoloque.
REPOSITION_AFTER_FRAMES = 3

# --- EVALUACIÓN DE FORMA ---
FORM_MIN_CONFIDENCE = 0.2
LATERAL_PAIR_MAX_PX = 50.0
TRUNK_MAX_OFFSET_PX = 30.0
DEPTH_MARGIN_PX = 20.0

# --- RESUMEN DE SESIÓN ---
LOW_QUALITY_THRESHOLD = 50
HIGH_PAIN_LEVEL = 6
HIGH_DIFFICULTY_LEVEL = 7
COMPLETION_FLOOR = 0.8

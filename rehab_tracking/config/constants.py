"""Constantes globales del motor: nombres de articulaciones y grupos corporales."""
from __future__ import annotations

# --- CONFIGURACIÓN GENERAL ---
APP_NAME = "REHAB TRACKING"

# --- NOMBRES DE KEYPOINTS ---
# Seguimos la nomenclatura de MoveNet/COCO que entrega el colaborador de pose.
NOSE = "nose"
LEFT_SHOULDER = "left_shoulder"
RIGHT_SHOULDER = "right_shoulder"
LEFT_ELBOW = "left_elbow"
RIGHT_ELBOW = "right_elbow"
LEFT_WRIST = "left_wrist"
RIGHT_WRIST = "right_wrist"
LEFT_HIP = "left_hip"
RIGHT_HIP = "right_hip"
LEFT_KNEE = "left_knee"
RIGHT_KNEE = "right_knee"
LEFT_ANKLE = "left_ankle"
RIGHT_ANKLE = "right_ankle"

# Articulaciones finas de la mano: MoveNet no las produce, pero el catálogo
# de ejercicios las referencia para flexiones de dedos.
LEFT_INDEX = "left_index"
RIGHT_INDEX = "right_index"
LEFT_THUMB = "left_thumb"
RIGHT_THUMB = "right_thumb"
LEFT_PINKY = "left_pinky"
RIGHT_PINKY = "right_pinky"

SIDES = ("left", "right")

# Articulaciones cuya visibilidad indica que el cuerpo entra en cámara.
ESSENTIAL_JOINTS = (
    LEFT_SHOULDER,
    RIGHT_SHOULDER,
    LEFT_HIP,
    RIGHT_HIP,
    LEFT_KNEE,
    RIGHT_KNEE,
    LEFT_ANKLE,
    RIGHT_ANKLE,
)

# --- FEEDBACK AL USUARIO ---
FEEDBACK_READY = "Ready when you are!"
FEEDBACK_NO_POSE = "Please position yourself in the camera view"
FEEDBACK_LOW_VISIBILITY = "Please ensure your upper and lower body are visible in the camera."
FEEDBACK_REPOSITION = "Move closer to the camera so your joints are visible."
FEEDBACK_SHOW_WRIST = "Show your wrist clearly to the camera."
FEEDBACK_RETURN_TO_START = "Good! Return to the start to complete the rep."
FEEDBACK_FALLBACK_ROLES = "Using wrist tracking for finger exercise. Keep wrist in view."
FEEDBACK_GOOD_FORM = "Perfect form! Keep it up!"

"""Command-line runner that replays a recorded landmark CSV through the tracking engine."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable

from rehab_tracking import config
from rehab_tracking.C_analysis.replay import load_landmarks_csv, replay_session
from rehab_tracking.core.errors import TrackingError
from rehab_tracking.D_modeling.session_summary import SubjectiveFeedback

LOGGER = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} no es un entero válido") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError("El valor debe ser un entero positivo")
    return number


def _scale_1_10(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} no es un número válido") from exc
    if not 1 <= number <= 10:
        raise argparse.ArgumentTypeError("El valor debe estar entre 1 y 10")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reproduce una sesión grabada (CSV de landmarks) y muestra su resumen.",
    )
    parser.add_argument("--landmarks", required=True, help="CSV con columnas <joint>_x, <joint>_y, <joint>_score y time_s")
    parser.add_argument("--exercise", required=True, help="Identificador del ejercicio en el catálogo")
    parser.add_argument("--target-reps", type=_positive_int, required=True, help="Repeticiones objetivo")
    parser.add_argument("--pain", type=_scale_1_10, required=True, help="Dolor percibido (1-10)")
    parser.add_argument("--difficulty", type=_scale_1_10, required=True, help="Dificultad percibida (1-10)")
    parser.add_argument("--notes", default="", help="Notas del paciente")
    parser.add_argument("--config", default=None, help="YAML con parámetros que sobrescriben los valores por defecto")
    parser.add_argument("--catalog", default=None, help="YAML con el catálogo de ejercicios")
    parser.add_argument("--fps", type=float, default=30.0, help="FPS usados cuando el CSV no trae time_s")
    parser.add_argument(
        "--no-stop",
        action="store_true",
        help="Procesa la grabación completa aunque se alcance el objetivo.",
    )
    parser.add_argument("--trace", default=None, help="Ruta opcional donde guardar la traza por fotograma (CSV)")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Muestra mensajes de log detallados durante la ejecución.",
    )
    return parser


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    landmarks_path = Path(args.landmarks).expanduser()
    if not landmarks_path.is_file():
        parser.error(f"No se encontró el CSV de landmarks: {landmarks_path}")

    try:
        cfg = config.from_yaml(args.config) if args.config else config.load_default()
        catalog = config.load_catalog(args.catalog) if args.catalog else config.default_catalog()
        exercise = catalog[args.exercise]
        df = load_landmarks_csv(landmarks_path)
        feedback = SubjectiveFeedback(args.pain, args.difficulty, args.notes)
        result = replay_session(
            df,
            exercise,
            args.target_reps,
            feedback,
            cfg,
            fps=args.fps,
            stop_at_completion=not args.no_stop,
        )
    except KeyError as exc:
        LOGGER.error("%s", exc.args[0] if exc.args else exc)
        return 2
    except (TrackingError, ValueError) as exc:
        LOGGER.error("Replay failed: %s", exc)
        return 1

    if args.trace:
        result.trace.to_csv(args.trace, index=False)
        LOGGER.info("Frame trace written to %s", args.trace)

    json.dump(result.summary.to_payload(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())

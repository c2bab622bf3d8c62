"""Entry point for running darknet over a batch of images and annotating the results."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import cv2

from .config.settings import AppSettings, load_settings
from .errors import AnnotatorError, ImageReadError, ImageWriteError, UnknownClassError
from .models import AnnotationOutcome, BatchReport, ClassCatalog, Detection
from .services.annotator import Annotator
from .services.detector import DarknetRunner, ImagePaths, normalize_image_paths
from .services.output_writer import OutputWriter, resolve_save_path
from .utils.colors import ColorAssignment
from .utils.image_io import translate_cv_error

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_IMAGE_FAILURES = 1
EXIT_BATCH_ABORTED = 2

_PER_IMAGE_ERRORS = (ImageReadError, ImageWriteError, UnknownClassError, cv2.error, OSError)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run darknet on images and draw the detected boxes")
    parser.add_argument("images", nargs="+", help="Image paths to run through the detector")
    parser.add_argument("--save", type=str, default=None, help="Output .png path or prefix for numbered files")
    parser.add_argument("--settings", type=Path, default=None, help="YAML file with settings overrides")
    parser.add_argument("--darknet", type=str, default=None, help="Path to the darknet executable")
    parser.add_argument("--weights", type=str, default=None, help="Path to the YOLO weights file")
    parser.add_argument("--cfg", type=str, default=None, help="Path to the YOLO network config")
    parser.add_argument("--data", type=str, default=None, help="Path to the darknet .data file")
    parser.add_argument("--names", type=str, default=None, help="Path to the class names file")
    parser.add_argument("--gpu", action="store_true", help="Detector is a GPU build (shorter banner)")
    parser.add_argument("--keyword", type=str, default=None, help="Marker text separating image blocks")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the class color permutation")
    parser.add_argument("--color-scope", choices=["batch", "image"], default=None, help="Reshuffle colors per batch or per image")
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first image that cannot be annotated")
    parser.add_argument("--debug", action="store_true", help="Log parsed predictions")
    parser.add_argument("--log-format", choices=["text", "json"], default=None, help="Logging format")
    return parser


def setup_logging(settings: AppSettings) -> None:
    log_level = logging.DEBUG if settings.debug else logging.INFO
    if settings.log_format == "json":
        formatter = logging.Formatter('{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}')
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=log_level, handlers=[handler])


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    overrides = {}
    if args.darknet:
        overrides["detector_binary"] = Path(args.darknet)
    if args.weights:
        overrides["weights_path"] = Path(args.weights)
    if args.cfg:
        overrides["config_path"] = Path(args.cfg)
    if args.data:
        overrides["data_file"] = Path(args.data)
    if args.names:
        overrides["class_names_path"] = Path(args.names)
    if args.gpu:
        overrides["have_gpu"] = True
    if args.keyword:
        overrides["split_keyword"] = args.keyword
    if args.seed is not None:
        overrides["color_seed"] = args.seed
    if args.color_scope:
        overrides["color_scope"] = args.color_scope
    if args.debug:
        overrides["debug"] = True
    if args.log_format:
        overrides["log_format"] = args.log_format

    return load_settings(args.settings, **overrides)


def annotate_batch(
    image_paths: Sequence[str],
    detections: Sequence[List[Detection]],
    annotator: Annotator,
    writer: OutputWriter,
    save_path: Optional[str] = None,
    *,
    fail_fast: bool = False,
) -> BatchReport:
    """Annotate each image independently and queue its save."""

    report = BatchReport()
    batch_colors: Optional[ColorAssignment] = None
    if annotator.settings.color_scope == "batch":
        batch_colors = annotator.build_colors()

    for index, (image_path, image_detections) in enumerate(zip(image_paths, detections)):
        outcome = AnnotationOutcome(index=index, image_path=image_path, detections=list(image_detections))
        report.outcomes.append(outcome)
        try:
            image = annotator.annotate(image_path, image_detections, batch_colors)
            target = resolve_save_path(save_path, index)
            if target is not None:
                outcome.output_path = target
                outcome.save_future = writer.save(image, target)
        except _PER_IMAGE_ERRORS as exc:
            outcome.error = translate_cv_error(exc) if isinstance(exc, cv2.error) else str(exc)
            LOGGER.error("Unable to annotate %s: %s", image_path, outcome.error)
            if fail_fast:
                raise
    return report


def run_batch(
    image_paths: ImagePaths,
    settings: AppSettings,
    save_path: Optional[str] = None,
    *,
    runner: Optional[DarknetRunner] = None,
    annotator: Optional[Annotator] = None,
    writer: Optional[OutputWriter] = None,
    fail_fast: bool = False,
) -> BatchReport:
    """Detect, annotate and save a batch; returns once every save has finished."""

    paths = normalize_image_paths(image_paths)
    runner = runner or DarknetRunner(settings)
    if annotator is None:
        annotator = Annotator(ClassCatalog.from_file(settings.class_names_path), settings)

    detections = runner.run(paths)

    owns_writer = writer is None
    writer = writer or OutputWriter(max_workers=settings.save_workers)
    try:
        report = annotate_batch(paths, detections, annotator, writer, save_path, fail_fast=fail_fast)
        written = report.wait()
    finally:
        if owns_writer:
            writer.close()

    LOGGER.info(
        "Annotated %d/%d images, %d saved",
        len(report.succeeded),
        len(report.outcomes),
        len(written),
    )
    return report


def run_detection(args: argparse.Namespace) -> int:
    settings = resolve_settings(args)
    setup_logging(settings)

    LOGGER.info("Starting darknet batch annotation for %d images", len(args.images))
    try:
        report = run_batch(args.images, settings, args.save, fail_fast=args.fail_fast)
    except (AnnotatorError, cv2.error, OSError) as exc:
        LOGGER.error("Detection batch failed: %s", exc)
        return EXIT_BATCH_ABORTED

    for outcome in report.failed:
        LOGGER.warning("Image %d (%s) failed: %s", outcome.index, outcome.image_path, outcome.error)
    return EXIT_OK if not report.failed else EXIT_IMAGE_FAILURES


def main() -> None:
    parser = build_arg_parser()
    args = parser.parse_args()

    def handle_interrupt(signum: int, frame: Optional[object]) -> None:  # pragma: no cover - signal handling
        LOGGER.warning("Received interrupt signal (%d), shutting down", signum)
        sys.exit(130)

    signal.signal(signal.SIGINT, handle_interrupt)
    sys.exit(run_detection(args))


if __name__ == "__main__":  # pragma: no cover
    main()

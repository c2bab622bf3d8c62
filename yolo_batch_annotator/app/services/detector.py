"""darknet detection runner."""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Sequence, Union

from ..config.settings import AppSettings
from ..errors import DetectorOutputError, DetectorProcessError, ManifestError
from ..models import Detection
from .output_writer import remove_quietly
from .result_parser import describe_detection, parse_detection_block, split_output_blocks

LOGGER = logging.getLogger(__name__)

ImagePaths = Union[str, Sequence[Union[str, Path]]]

# darknet writes its own rendering next to the process when it can.
DETECTOR_SIDE_OUTPUTS = ("predictions.jpg", "predictions.png")


def normalize_image_paths(image_paths: ImagePaths) -> List[str]:
    """Accept a line-break separated string or a sequence of paths."""

    if isinstance(image_paths, str):
        entries = image_paths.splitlines()
    else:
        entries = [str(path) for path in image_paths]
    paths = [entry.strip() for entry in entries if entry.strip()]
    if not paths:
        raise ValueError("At least one image path is required")
    return paths


class DarknetRunner:
    """Runs `darknet detector test` over a batch of images and parses its output."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings

    def build_command(self) -> List[str]:
        settings = self.settings
        return [
            str(settings.detector_binary),
            "detector",
            "test",
            "-ext_output",
            "-dont_show",
            str(settings.data_file),
            str(settings.config_path),
            str(settings.weights_path),
        ]

    def write_manifest(self, paths: Sequence[str]) -> Path:
        manifest = self.settings.manifest_path
        try:
            manifest.parent.mkdir(parents=True, exist_ok=True)
            manifest.write_text("\n".join(paths) + "\n", encoding="utf-8", errors="surrogateescape")
        except (OSError, UnicodeError) as exc:
            raise ManifestError(f"Unable to write manifest {manifest}: {exc}") from exc
        LOGGER.debug("Wrote %d image paths to %s", len(paths), manifest)
        return manifest

    def invoke(self, manifest: Path) -> str:
        """Run the detector with ``manifest`` on stdin and return its stdout."""

        command = self.build_command()
        LOGGER.info("Running detector: %s < %s", " ".join(command), manifest)
        try:
            with manifest.open("r", encoding="utf-8", errors="surrogateescape") as stdin:
                result = subprocess.run(
                    command,
                    stdin=stdin,
                    cwd=self.settings.detector_workdir,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="surrogateescape",
                    check=True,
                    timeout=self.settings.detector_timeout_seconds,
                )
        except FileNotFoundError as exc:
            raise DetectorProcessError(f"Detector binary not found: {command[0]}") from exc
        except PermissionError as exc:
            raise DetectorProcessError(f"Detector binary is not executable: {command[0]}") from exc
        except OSError as exc:
            raise DetectorProcessError(f"Unable to start detector {command[0]}: {exc}") from exc
        except subprocess.CalledProcessError as exc:
            if exc.stderr:
                LOGGER.error("Detector stderr: %s", " | ".join(exc.stderr.strip().splitlines()))
            raise DetectorProcessError(
                f"Detector exited with status {exc.returncode}",
                returncode=exc.returncode,
                stderr=exc.stderr or "",
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise DetectorProcessError(f"Detector timed out after {exc.timeout} seconds") from exc
        except UnicodeError as exc:
            raise DetectorProcessError(f"Unable to decode detector output: {exc}") from exc
        return result.stdout

    def run(self, image_paths: ImagePaths) -> List[List[Detection]]:
        """Return one detection list per image, in input order."""

        paths = normalize_image_paths(image_paths)
        manifest = self.write_manifest(paths)
        try:
            output = self.invoke(manifest)
            blocks = split_output_blocks(output, self.settings.split_keyword, self.settings.have_gpu)
            blocks = self._align_blocks(blocks, len(paths))
            detections = [parse_detection_block(block) for block in blocks]
        finally:
            remove_quietly(manifest)
            for name in DETECTOR_SIDE_OUTPUTS:
                remove_quietly(self.settings.detector_workdir / name)

        for path, image_detections in zip(paths, detections):
            LOGGER.debug("Predictions for %s: %d objects", path, len(image_detections))
            for detection in image_detections:
                LOGGER.debug("  %s: %s", path, describe_detection(detection))
        LOGGER.info("Parsed %d detections across %d images", sum(map(len, detections)), len(paths))
        return detections

    @staticmethod
    def _align_blocks(blocks: List[List[str]], expected: int) -> List[List[str]]:
        # darknet prints one more prompt once stdin is exhausted.
        while len(blocks) > expected and not blocks[-1]:
            blocks.pop()
        if len(blocks) != expected:
            raise DetectorOutputError(f"Detector reported {len(blocks)} image blocks for {expected} images")
        return blocks

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable

import cv2
import numpy as np
import pytest

from yolo_batch_annotator.app.config.settings import AppSettings
from yolo_batch_annotator.app.models import ClassCatalog
from yolo_batch_annotator.tests.utils import CLASS_NAMES


@pytest.fixture()
def names_file(tmp_path: Path) -> Path:
    path = tmp_path / "coco.names"
    path.write_text("\r\n".join(CLASS_NAMES) + "\r\n", encoding="utf-8")
    return path


@pytest.fixture()
def catalog(names_file: Path) -> ClassCatalog:
    return ClassCatalog.from_file(names_file)


@pytest.fixture()
def settings(tmp_path: Path, names_file: Path) -> AppSettings:
    return AppSettings(
        detector_binary=tmp_path / "darknet",
        detector_workdir=tmp_path,
        manifest_path=tmp_path / "train.txt",
        class_names_path=names_file,
        color_seed=7,
    )


@pytest.fixture()
def image_factory(tmp_path: Path) -> Callable[[str], Path]:
    def _make(name: str, size: int = 200) -> Path:
        path = tmp_path / name
        cv2.imwrite(str(path), np.full((size, size, 3), 255, dtype=np.uint8))
        return path

    return _make


@pytest.fixture()
def fake_darknet(monkeypatch: pytest.MonkeyPatch):
    """Replace subprocess.run; records the manifest the detector would have read."""

    calls = []

    def _install(stdout: str, returncode: int = 0, stderr: str = ""):
        def fake_run(command, stdin=None, **kwargs):
            manifest = stdin.read() if stdin is not None else ""
            calls.append({"command": command, "manifest": manifest, "kwargs": kwargs})
            if returncode != 0:
                raise subprocess.CalledProcessError(returncode, command, output=stdout, stderr=stderr)
            return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr=stderr)

        monkeypatch.setattr(subprocess, "run", fake_run)
        return calls

    return _install

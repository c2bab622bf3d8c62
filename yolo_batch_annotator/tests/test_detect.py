from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from yolo_batch_annotator.app import detect
from yolo_batch_annotator.app.config.settings import AppSettings
from yolo_batch_annotator.app.errors import DetectorProcessError, ImageReadError
from yolo_batch_annotator.app.models import BatchReport, BoundingBox, ClassCatalog, Detection
from yolo_batch_annotator.app.services.annotator import Annotator
from yolo_batch_annotator.app.services.output_writer import OutputWriter
from yolo_batch_annotator.tests.utils import build_output, detection_line


def person(x: int = 10) -> Detection:
    return Detection(name="person", prob=87, box=BoundingBox(x=x, y=40, w=50, h=50))


def stub_runner(detections):
    runner = MagicMock()
    runner.run.return_value = detections
    return runner


def test_run_batch_saves_numbered_pngs(settings: AppSettings, image_factory, tmp_path: Path) -> None:
    paths = [str(image_factory(f"img{idx}.png")) for idx in range(3)]
    runner = stub_runner([[person()], [], [person(20), person(80)]])

    report = detect.run_batch(paths, settings, str(tmp_path / "out"), runner=runner)

    assert [outcome.ok for outcome in report.outcomes] == [True, True, True]
    assert [outcome.image_path for outcome in report.outcomes] == paths
    for idx in range(3):
        assert (tmp_path / f"out{idx}.png").exists()
    assert all(outcome.save_future is None for outcome in report.outcomes)


def test_failed_image_does_not_stop_the_batch(settings: AppSettings, image_factory, tmp_path: Path) -> None:
    good = str(image_factory("good.png"))
    missing = str(tmp_path / "missing.png")
    unknown = Detection(name="unicorn", prob=10, box=BoundingBox(x=1, y=1, w=2, h=2))
    runner = stub_runner([[person()], [person()], [unknown]])

    report = detect.run_batch([missing, good, good], settings, str(tmp_path / "out"), runner=runner)

    assert [outcome.ok for outcome in report.outcomes] == [False, True, False]
    assert "missing.png" in report.outcomes[0].error
    assert "unicorn" in report.outcomes[2].error
    assert [outcome.index for outcome in report.succeeded] == [1]
    assert (tmp_path / "out1.png").exists()
    assert not (tmp_path / "out0.png").exists()


def test_fail_fast_reraises(settings: AppSettings, tmp_path: Path) -> None:
    runner = stub_runner([[]])

    with pytest.raises(ImageReadError):
        detect.run_batch([str(tmp_path / "missing.png")], settings, runner=runner, fail_fast=True)


def test_batch_scope_builds_colors_once(settings: AppSettings, catalog: ClassCatalog, image_factory) -> None:
    path = str(image_factory("img.png"))
    annotator = Annotator(catalog, settings)
    annotator.build_colors = MagicMock(wraps=annotator.build_colors)

    with OutputWriter() as writer:
        detect.annotate_batch([path, path, path], [[person()]] * 3, annotator, writer)

    assert annotator.build_colors.call_count == 1


def test_image_scope_reshuffles_per_image(settings: AppSettings, catalog: ClassCatalog, image_factory) -> None:
    settings.color_scope = "image"
    path = str(image_factory("img.png"))
    annotator = Annotator(catalog, settings)
    annotator.build_colors = MagicMock(wraps=annotator.build_colors)

    with OutputWriter() as writer:
        report = detect.annotate_batch([path, path], [[person()], [person()]], annotator, writer)

    assert annotator.build_colors.call_count == 2
    assert isinstance(report, BatchReport)
    assert all(outcome.output_path is None for outcome in report.outcomes)


def test_manifest_lifecycle_end_to_end(settings: AppSettings, image_factory, fake_darknet, tmp_path: Path) -> None:
    paths = [str(image_factory("a.png")), str(tmp_path / "not_there.png")]
    output = build_output(
        [[detection_line("person", 87, 10, 20, 30, 40)], [detection_line("dog", 50, 1, 1, 9, 9)]],
        paths,
    )
    calls = fake_darknet(output)

    report = detect.run_batch("\r\n".join(paths), settings, str(tmp_path / "pred"))

    assert calls[0]["manifest"].splitlines() == paths
    assert not settings.manifest_path.exists()
    assert [outcome.ok for outcome in report.outcomes] == [True, False]
    assert (tmp_path / "pred0.png").exists()


def test_resolve_settings_applies_cli_overrides(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text("split_keyword: 'Enter Image'\nlabel_alpha: 200\n")
    args = detect.build_arg_parser().parse_args(
        ["a.png", "--settings", str(settings_file), "--gpu", "--seed", "3", "--names", str(tmp_path / "x.names")]
    )

    settings = detect.resolve_settings(args)

    assert settings.have_gpu is True
    assert settings.color_seed == 3
    assert settings.split_keyword == "Enter Image"
    assert settings.label_alpha == 200
    assert settings.class_names_path == tmp_path / "x.names"


def test_run_detection_exit_codes(monkeypatch: pytest.MonkeyPatch, settings: AppSettings) -> None:
    monkeypatch.setattr(detect, "resolve_settings", lambda _args: settings)
    monkeypatch.setattr(detect, "setup_logging", lambda _settings: None)
    args = detect.build_arg_parser().parse_args(["a.png", "b.png"])

    def failing_batch(*_args, **_kwargs):
        raise DetectorProcessError("Detector exited with status 1", returncode=1)

    monkeypatch.setattr(detect, "run_batch", failing_batch)
    assert detect.run_detection(args) == detect.EXIT_BATCH_ABORTED

    report = BatchReport()
    report.outcomes.extend(
        [
            detect.AnnotationOutcome(index=0, image_path="a.png", detections=[]),
            detect.AnnotationOutcome(index=1, image_path="b.png", detections=[], error="boom"),
        ]
    )
    monkeypatch.setattr(detect, "run_batch", lambda *_args, **_kwargs: report)
    assert detect.run_detection(args) == detect.EXIT_IMAGE_FAILURES

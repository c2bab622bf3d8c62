from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from yolo_batch_annotator.app.config.settings import AppSettings, load_settings


def test_defaults_match_darknet_cpu_build() -> None:
    settings = AppSettings()

    assert settings.have_gpu is False
    assert settings.split_keyword == "Enter Image Path"
    assert settings.font_scale == 0.5
    assert settings.label_alpha == 128
    assert settings.color_scope == "batch"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("YOLO_ANNOTATOR_HAVE_GPU", "true")
    monkeypatch.setenv("YOLO_ANNOTATOR_MANIFEST_PATH", "~/manifest.txt")

    settings = load_settings()

    assert settings.have_gpu is True
    assert settings.manifest_path == Path("~/manifest.txt").expanduser()


def test_overrides_win_over_settings_file(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text("color_seed: 1\ndebug: true\n")

    settings = load_settings(settings_file, color_seed=9)

    assert settings.color_seed == 9
    assert settings.debug is True


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        AppSettings(text_color=[0, 0, 300])
    with pytest.raises(ValidationError):
        AppSettings(color_scope="frame")

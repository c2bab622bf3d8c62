"""Configuration utilities for the darknet batch annotator."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class AppSettings(BaseSettings):
    """Application configuration sourced from environment variables or defaults."""

    model_config = SettingsConfigDict(env_prefix="YOLO_ANNOTATOR_", case_sensitive=False)

    detector_binary: Path = Field(
        default=PROJECT_ROOT / "darknet" / "darknet",
        description="darknet executable invoked as `detector test`.",
    )
    detector_workdir: Path = Field(default=PROJECT_ROOT, description="Working directory for the detector process.")
    weights_path: Path = Field(default=PROJECT_ROOT / "data" / "yolo" / "yolov3.weights")
    config_path: Path = Field(default=PROJECT_ROOT / "data" / "yolo" / "yolov3.cfg")
    data_file: Path = Field(
        default=PROJECT_ROOT / "data" / "coco.data",
        description="darknet .data file passed on the detector command line.",
    )
    class_names_path: Path = Field(
        default=PROJECT_ROOT / "data" / "coco.names",
        description="One class name per line, line index is the class id.",
    )
    manifest_path: Path = Field(
        default=PROJECT_ROOT / "train.txt",
        description="Transient image list fed to the detector on stdin.",
    )
    have_gpu: bool = Field(default=False, description="GPU builds print a shorter banner.")
    split_keyword: str = Field(default="Enter Image Path")
    detector_timeout_seconds: Optional[float] = Field(default=None, gt=0.0)
    font_scale: float = Field(default=0.5, gt=0.0)
    text_color: List[int] = Field(default_factory=lambda: [0, 0, 0])
    label_alpha: int = Field(default=128, ge=0, le=255)
    label_width: int = Field(default=105, ge=0)
    label_height: int = Field(default=20, ge=0)
    color_scope: Literal["batch", "image"] = "batch"
    color_seed: Optional[int] = None
    save_workers: int = Field(default=2, ge=1)
    debug: bool = False
    log_format: Literal["text", "json"] = "text"

    @field_validator(
        "detector_binary",
        "detector_workdir",
        "weights_path",
        "config_path",
        "data_file",
        "class_names_path",
        "manifest_path",
        mode="before",
    )
    @classmethod
    def _expand_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser()

    @field_validator("text_color")
    @classmethod
    def _check_color(cls, value: List[int]) -> List[int]:
        if len(value) != 3 or any(not 0 <= channel <= 255 for channel in value):
            raise ValueError("text_color must be three channel values in 0..255")
        return value


def read_settings_file(path: Path) -> Dict[str, Any]:
    with Path(path).expanduser().open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return payload


def load_settings(settings_file: Optional[Path] = None, **overrides: object) -> AppSettings:
    """Return application settings, applying an optional YAML file and then overrides."""

    values: Dict[str, Any] = {}
    if settings_file is not None:
        values.update(read_settings_file(settings_file))
    values.update(overrides)
    return AppSettings(**values)

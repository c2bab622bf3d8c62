#!/usr/bin/env python3
"""Download the darknet YOLOv3 files the annotator expects."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, Optional

import requests

MODEL_FILES: Dict[str, Dict[str, str]] = {
    "yolov3": {
        "yolov3.weights": "https://pjreddie.com/media/files/yolov3.weights",
        "yolov3.cfg": "https://raw.githubusercontent.com/pjreddie/darknet/master/cfg/yolov3.cfg",
    },
    "yolov3-tiny": {
        "yolov3-tiny.weights": "https://pjreddie.com/media/files/yolov3-tiny.weights",
        "yolov3-tiny.cfg": "https://raw.githubusercontent.com/pjreddie/darknet/master/cfg/yolov3-tiny.cfg",
    },
}
NAMES_URL = "https://raw.githubusercontent.com/pjreddie/darknet/master/data/coco.names"


def download_file(url: str, target: Path, session: Optional[requests.Session] = None) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    client = session or requests
    response = client.get(url, timeout=60, stream=True)
    response.raise_for_status()
    with target.open("wb") as handle:
        for chunk in response.iter_content(chunk_size=1 << 20):
            if chunk:
                handle.write(chunk)
    print(f"Downloaded {url} -> {target}")
    return target


def download_model(variant: str, output_dir: Path, session: Optional[requests.Session] = None) -> Dict[str, Path]:
    """Fetch the weights and network config for ``variant`` plus the COCO class names."""

    files = dict(MODEL_FILES[variant])
    saved: Dict[str, Path] = {}
    for name, url in files.items():
        saved[name] = download_file(url, output_dir / "yolo" / name, session)
    saved["coco.names"] = download_file(NAMES_URL, output_dir / "coco.names", session)
    return saved


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Download darknet YOLO weights, config and class names")
    parser.add_argument("--variant", choices=MODEL_FILES.keys(), default="yolov3", help="Model variant to download")
    parser.add_argument("--output", type=Path, default=Path("data"), help="Destination data directory")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    download_model(args.variant, args.output)


if __name__ == "__main__":
    main()

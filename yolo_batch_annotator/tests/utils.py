"""Builders for synthetic darknet console output."""
from __future__ import annotations

from typing import List, Sequence

CLASS_NAMES = ["person", "bicycle", "car", "dog", "traffic light"]

CPU_BANNER = [
    " Try to load cfg: yolov3.cfg, weights: yolov3.weights, clear = 0 ",
    "net.optimized_memory = 0 ",
    "Done! Loaded 107 layers from weights-file ",
]


def detection_line(name: str, prob: int, x: int, y: int, w: int, h: int) -> str:
    return f"{name}: {prob}%\t(left_x: {x:4d}   top_y: {y:4d}   width: {w:4d}   height: {h:4d})"


def build_output(blocks: Sequence[Sequence[str]], image_paths: Sequence[str], banner: Sequence[str] = CPU_BANNER) -> str:
    lines: List[str] = list(banner)
    for path, block in zip(image_paths, blocks):
        lines.append(f"Enter Image Path:  {path}: Predicted in 41.2 milli-seconds.")
        lines.extend(block)
    lines.append("Enter Image Path: ")
    return "\n".join(lines) + "\n"

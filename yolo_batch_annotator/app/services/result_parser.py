"""Parse darknet `detector test -ext_output` console output."""
from __future__ import annotations

import logging
import re
from typing import Iterable, List

from ..errors import DetectionFormatError
from ..models import BoundingBox, Detection

LOGGER = logging.getLogger(__name__)

# Runs of two or more spaces separate the box tokens. A lone space after a
# label colon still splits so that 4-digit values ("left_x: 1024") tokenize.
_BOX_SEPARATOR = re.compile(r"\s{2,}|(?<=:)\s")

GPU_HEADER_LINES = 1
CPU_HEADER_LINES = 3
FOOTER_LINES = 1


def split_output_blocks(output: str, keyword: str, have_gpu: bool = False) -> List[List[str]]:
    """Split detector output into per-image blocks of detection lines.

    The banner is stripped first (1 leading line for GPU builds, 3 for CPU
    builds, 1 trailing line for both). Every line containing ``keyword`` marks
    the start of an image; the lines strictly between two markers belong to
    the earlier one and the last block runs to the end of the output.
    """

    lines = output.strip().splitlines()
    header = GPU_HEADER_LINES if have_gpu else CPU_HEADER_LINES
    lines = lines[header : len(lines) - FOOTER_LINES]

    markers = [idx for idx, line in enumerate(lines) if keyword in line]
    blocks: List[List[str]] = []
    for position, start in enumerate(markers):
        end = markers[position + 1] if position + 1 < len(markers) else len(lines)
        blocks.append(lines[start + 1 : end])
    LOGGER.debug("Found %d image blocks in %d output lines", len(blocks), len(lines))
    return blocks


def parse_percentage(text: str) -> int:
    """Parse ``"87%"`` or ``"87.6%"`` into an integer, discarding fractions."""

    cleaned = text.strip().rstrip("%").strip()
    try:
        return int(float(cleaned))
    except ValueError:
        raise DetectionFormatError(f"Invalid confidence value: {text!r}") from None


def parse_box(field: str) -> BoundingBox:
    """Parse ``"(left_x:   10   top_y:   20   width:   30   height:   40)"``."""

    inner = field.rstrip()[1:-1]
    tokens = [token for token in _BOX_SEPARATOR.split(inner.strip()) if token]
    if len(tokens) < 8:
        raise DetectionFormatError(f"Expected 8 box tokens, got {len(tokens)}: {field!r}")
    try:
        x, y, w, h = (int(float(tokens[pos])) for pos in (1, 3, 5, 7))
    except ValueError:
        raise DetectionFormatError(f"Non-numeric box coordinates: {field!r}") from None
    return BoundingBox(x=x, y=y, w=w, h=h)


def parse_detection_line(line: str) -> Detection:
    fields = line.split("\t")
    if len(fields) < 2:
        raise DetectionFormatError(f"Expected 2 tab-separated fields, got {len(fields)}: {line!r}")

    name, separator, percent = fields[0].rpartition(": ")
    if not separator:
        raise DetectionFormatError(f"Expected '<name>: <percent>%', got {fields[0]!r}")
    prob = parse_percentage(percent)
    box = parse_box(fields[1])
    try:
        return Detection(name=name.strip(), prob=prob, box=box)
    except ValueError as exc:
        raise DetectionFormatError(f"{exc}: {line!r}") from exc


def parse_detection_block(lines: Iterable[str]) -> List[Detection]:
    """Convert one image block into detections, preserving line order."""

    return [parse_detection_line(line) for line in lines]


def parse_output(output: str, keyword: str, have_gpu: bool = False) -> List[List[Detection]]:
    return [parse_detection_block(block) for block in split_output_blocks(output, keyword, have_gpu)]


def describe_detection(detection: Detection) -> str:
    """Render one detection on a single line for debug logs."""

    box = detection.box
    return f"{detection.label}% at x={box.x} y={box.y} w={box.w} h={box.h}"

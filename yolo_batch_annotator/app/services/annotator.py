"""Draw class-colored detection boxes onto images."""
from __future__ import annotations

import logging
import random
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from ..config.settings import AppSettings
from ..models import ClassCatalog, Detection
from ..utils.colors import ColorAssignment
from ..utils.image_io import read_image

LOGGER = logging.getLogger(__name__)

Point = Tuple[int, int]


def box_thickness(width: int, height: int) -> int:
    """Line thickness that scales with the image, at least one pixel."""

    return max(1, int(round(0.8 * (height + width) / 600)))


def blend_rectangle(image: np.ndarray, p1: Point, p2: Point, color: Tuple[int, int, int], alpha: float) -> None:
    """Fill the rectangle spanned by ``p1`` and ``p2`` with ``color`` at ``alpha`` opacity, in place."""

    height, width = image.shape[:2]
    x0, x1 = sorted((p1[0], p2[0]))
    y0, y1 = sorted((p1[1], p2[1]))
    x0, y0 = max(x0, 0), max(y0, 0)
    x1, y1 = min(x1 + 1, width), min(y1 + 1, height)
    if x0 >= x1 or y0 >= y1:
        return
    region = image[y0:y1, x0:x1]
    fill = np.empty_like(region)
    fill[:] = color
    image[y0:y1, x0:x1] = cv2.addWeighted(fill, alpha, region, 1.0 - alpha, 0)


class Annotator:
    """Renders detections with one color per class of the catalog."""

    FONT = cv2.FONT_HERSHEY_SIMPLEX

    def __init__(self, catalog: ClassCatalog, settings: AppSettings, rng: Optional[random.Random] = None) -> None:
        self.catalog = catalog
        self.settings = settings
        self._rng = rng or random.Random(settings.color_seed)

    def build_colors(self) -> ColorAssignment:
        return ColorAssignment.generate(len(self.catalog), self._rng)

    def draw(self, image: np.ndarray, detections: Iterable[Detection], colors: ColorAssignment) -> np.ndarray:
        """Draw every detection onto ``image`` and return it."""

        settings = self.settings
        height, width = image.shape[:2]
        thickness = box_thickness(width, height)
        alpha = settings.label_alpha / 255.0
        r, g, b = settings.text_color
        text_color = (b, g, r)

        for detection in detections:
            class_index = self.catalog.index_of(detection.name)
            color = colors.bgr(class_index)
            p1, p2 = detection.box.corners()
            label_corner = (p1[0] + settings.label_width, p1[1] - settings.label_height)

            cv2.rectangle(image, p1, p2, color, thickness)
            blend_rectangle(image, p1, label_corner, color, alpha)
            cv2.putText(
                image,
                detection.label,
                (p1[0], p1[1] - 2),
                self.FONT,
                settings.font_scale,
                text_color,
                1,
                lineType=cv2.LINE_AA,
            )
        return image

    def annotate(
        self,
        image_path: str,
        detections: Iterable[Detection],
        colors: Optional[ColorAssignment] = None,
    ) -> np.ndarray:
        """Load ``image_path`` and draw its detections."""

        image = read_image(image_path)
        if colors is None:
            colors = self.build_colors()
        return self.draw(image, detections, colors)

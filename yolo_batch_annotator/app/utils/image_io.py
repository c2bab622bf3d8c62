"""Image decode/encode helpers around OpenCV."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from ..errors import ImageReadError, ImageWriteError

LOGGER = logging.getLogger(__name__)


def translate_cv_error(exc: BaseException) -> str:
    """Return a short, readable diagnostic for OpenCV and IO failures."""

    if isinstance(exc, cv2.error):
        lines = str(exc).strip().splitlines()
        message = getattr(exc, "err", None) or (lines[-1] if lines else str(exc))
        return f"OpenCV error: {message}"
    return f"{type(exc).__name__}: {exc}"


def read_image(path: Union[str, Path]) -> np.ndarray:
    """Load an image as a BGR array."""

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ImageReadError(f"Unable to decode image: {path}")
    LOGGER.debug("Loaded %s (%dx%d)", path, image.shape[1], image.shape[0])
    return image


def encode_png(image: np.ndarray) -> bytes:
    try:
        success, buffer = cv2.imencode(".png", image)
    except cv2.error as exc:
        raise ImageWriteError(translate_cv_error(exc)) from exc
    if not success:
        raise ImageWriteError("PNG encoding failed")
    return buffer.tobytes()

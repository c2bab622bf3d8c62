"""Persist annotated images and clean up transient files."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ..errors import ImageWriteError
from ..utils.image_io import encode_png

LOGGER = logging.getLogger(__name__)

PNG_SUFFIX = ".png"


def resolve_save_path(save_path: Optional[Union[str, Path]], index: int) -> Optional[Path]:
    """Return where image ``index`` of a batch is written, or None when not saving.

    A path already ending in ``.png`` is used as-is for every image of the
    batch; any other value is treated as a prefix and gets ``<index>.png``.
    """

    if save_path is None or str(save_path) == "":
        return None
    raw = str(save_path)
    if raw.endswith(PNG_SUFFIX):
        return Path(raw)
    return Path(f"{raw}{index}{PNG_SUFFIX}")


def remove_quietly(path: Path) -> None:
    """Delete ``path`` if present; failures are logged, never raised."""

    try:
        path.unlink()
        LOGGER.debug("Removed %s", path)
    except FileNotFoundError:
        return
    except OSError as exc:
        LOGGER.warning("Unable to remove %s: %s", path, exc)


class OutputWriter:
    """Write PNG files on a small worker pool, one future per image."""

    def __init__(self, max_workers: int = 2) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="png-writer")

    def save(self, image: np.ndarray, path: Path) -> "Future[Path]":
        """Encode ``image`` now and write it in the background."""

        try:
            payload = encode_png(image)
        except ImageWriteError as exc:
            failed: "Future[Path]" = Future()
            failed.set_exception(exc)
            return failed
        return self._executor.submit(self._write, payload, Path(path))

    def close(self) -> None:
        LOGGER.debug("Closing output writer, waiting for pending writes")
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "OutputWriter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _write(payload: bytes, target: Path) -> Path:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
        except OSError as exc:
            raise ImageWriteError(f"Unable to write {target}: {exc}") from exc
        LOGGER.info("Image saved at %s", target)
        return target

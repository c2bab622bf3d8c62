"""Exception hierarchy for the annotator pipeline."""
from __future__ import annotations

from typing import Optional


class AnnotatorError(Exception):
    """Base class for every error raised by this package."""


class DetectorProcessError(AnnotatorError):
    """The darknet process could not be started or exited unsuccessfully."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class DetectorOutputError(AnnotatorError):
    """Detector output does not line up with the submitted image list."""


class DetectionFormatError(AnnotatorError, ValueError):
    """A detection line does not follow the `-ext_output` layout."""


class ManifestError(AnnotatorError):
    """The image manifest could not be written."""


class UnknownClassError(AnnotatorError, KeyError):
    """A detection names a class that is missing from the class catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ImageReadError(AnnotatorError):
    """An input image could not be decoded."""


class ImageWriteError(AnnotatorError):
    """An annotated image could not be encoded or written."""

"""Shared data models for the annotator."""
from __future__ import annotations

import logging
from concurrent.futures import Future, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import UnknownClassError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Top-left corner plus size, in pixels."""

    x: int
    y: int
    w: int
    h: int

    def corners(self) -> tuple[tuple[int, int], tuple[int, int]]:
        return (self.x, self.y), (self.x + self.w, self.y + self.h)


@dataclass(frozen=True)
class Detection:
    """Represents a single object reported by the detector."""

    name: str
    prob: int
    box: BoundingBox

    def __post_init__(self) -> None:
        if not 0 <= self.prob <= 100:
            raise ValueError(f"Detection probability must be within 0..100, got {self.prob}")

    @property
    def label(self) -> str:
        return f"{self.name}: {self.prob}"


class ClassCatalog:
    """Ordered class names where the line index in the names file is the class id."""

    def __init__(self, names: Iterable[str]) -> None:
        self._names: List[str] = [name.replace("\r", "").strip() for name in names]
        self._index: Dict[str, int] = {}
        for idx, name in enumerate(self._names):
            self._index.setdefault(name, idx)

    @classmethod
    def from_file(cls, path: Path) -> "ClassCatalog":
        text = Path(path).read_text(encoding="utf-8")
        catalog = cls(text.strip().split("\n"))
        LOGGER.debug("Loaded %d class names from %s", len(catalog), path)
        return catalog

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip() in self._index

    @property
    def names(self) -> Sequence[str]:
        return tuple(self._names)

    def index_of(self, name: str) -> int:
        try:
            return self._index[name.strip()]
        except KeyError:
            raise UnknownClassError(f"Class {name!r} is not present in the class catalog") from None

    def name_of(self, index: int) -> str:
        return self._names[index]


@dataclass
class AnnotationOutcome:
    """Result of annotating one image of a batch."""

    index: int
    image_path: str
    detections: List[Detection]
    output_path: Optional[Path] = None
    error: Optional[str] = None
    save_future: Optional["Future[Path]"] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    """Ordered per-image outcomes for a detection batch."""

    outcomes: List[AnnotationOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[AnnotationOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> List[AnnotationOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    def wait(self, timeout: Optional[float] = None) -> List[Path]:
        """Block until pending saves finish; failed saves are moved onto their outcome."""

        pending = [outcome.save_future for outcome in self.outcomes if outcome.save_future is not None]
        wait(pending, timeout=timeout)
        written: List[Path] = []
        for outcome in self.outcomes:
            future = outcome.save_future
            if future is None or not future.done():
                continue
            outcome.save_future = None
            exc = future.exception()
            if exc is not None:
                LOGGER.error("Saving image %d to %s failed: %s", outcome.index, outcome.output_path, exc)
                outcome.error = str(exc)
                continue
            written.append(future.result())
        return written

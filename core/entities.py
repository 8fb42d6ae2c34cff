# core/entities.py
from dataclasses import dataclass, field
from typing import List, NamedTuple
import numpy as np
from util.constants import IMAGE_MEDIA_PREFIX


@dataclass(frozen=True)
class Document:
    """
    One uploaded file. Lives for a single request and is never persisted.
    """

    data: bytes
    media_type: str = "application/pdf"

    @property
    def is_image(self) -> bool:
        return (self.media_type or "").lower().startswith(IMAGE_MEDIA_PREFIX)


@dataclass
class ExtractedText:
    """
    Ordered text fragments: per page, native text first, then one per OCR'd image.
    Failed units are kept as empty fragments.
    """

    fragments: List[str] = field(default_factory=list)

    def append(self, fragment: str) -> None:
        self.fragments.append((fragment or "").strip())

    @property
    def text(self) -> str:
        return "\n".join(f for f in self.fragments if f)

    @property
    def is_empty(self) -> bool:
        return not any(self.fragments)


@dataclass(frozen=True)
class CorpusEntry:
    text: str
    vector: np.ndarray  # (d,) float32


class SearchHit(NamedTuple):
    entry: CorpusEntry
    distance: float


class LengthBand(NamedTuple):
    min_length: int
    max_length: int

    @classmethod
    def of(cls, band) -> "LengthBand":
        lo, hi = int(band[0]), int(band[1])
        if lo < 0 or lo > hi:
            raise ValueError(f"invalid length band min={lo} max={hi}")
        return cls(lo, hi)

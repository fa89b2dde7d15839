"""Data models for source audio and its segments."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BYTES_PER_MB = 1024 * 1024


@dataclass
class AudioFile:
    """A validated source recording."""

    path: Path
    size_bytes: int
    type_tag: str
    duration: Optional[float] = None

    @property
    def size_mb(self) -> float:
        """File size in mebibytes."""
        return self.size_bytes / BYTES_PER_MB


@dataclass(frozen=True)
class Segment:
    """One duration-bounded slice of the source audio on disk."""

    index: int
    path: Path

"""Split a recording into size-bounded segments with ffmpeg."""
from __future__ import annotations

import asyncio
import logging
import math
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

from ..models.audio import BYTES_PER_MB, AudioFile, Segment
from ..utils.errors import VoiceNotesError
from .ffmpeg_core import (
    SEGMENT_PATTERN,
    build_ffprobe_duration_cmd,
    build_probe_cmd,
    build_segment_cmd,
    parse_duration,
    parse_ffprobe_duration,
)

if TYPE_CHECKING:
    from ..pipeline.context import RunContext

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE_MB = 24
MIN_CHUNK_SIZE_MB = 10
MAX_CHUNK_SIZE_MB = 50


class SegmentationError(VoiceNotesError):
    """ffmpeg could not read or split the recording."""


async def _run(cmd: List[str]) -> Tuple[int, str, str]:
    """Run a command and return (exit code, stdout, stderr)."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
    except FileNotFoundError as e:
        raise SegmentationError(
            f"{cmd[0]} is not installed or not on PATH",
            hint="Install FFmpeg (https://ffmpeg.org/download.html) and try again.",
        ) from e

    stdout, stderr = await proc.communicate()
    return (
        proc.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def calculate_chunk_count(size_bytes: int, chunk_size_mb: int) -> int:
    """Number of segments needed so each is about ``chunk_size_mb`` MB."""
    size_mb = size_bytes / BYTES_PER_MB
    return max(1, math.ceil(size_mb / chunk_size_mb))


async def probe_duration(path: Path) -> Optional[float]:
    """Get the recording duration in seconds via ffprobe; None if unknown.

    Used for cost accounting, where an unknown duration is not fatal.
    """
    try:
        returncode, stdout, _ = await _run(build_ffprobe_duration_cmd(path))
    except SegmentationError as e:
        logger.warning(f"Failed to get audio duration: {e.message}")
        return None
    if returncode != 0:
        logger.warning(f"ffprobe exited with code {returncode} for {path.name}")
        return None
    return parse_ffprobe_duration(stdout)


class Segmenter:
    """Split recordings into segments the transcription service accepts.

    Args:
        chunk_size_mb: Target segment size in MB (10-50)
    """

    def __init__(self, chunk_size_mb: int = DEFAULT_CHUNK_SIZE_MB):
        if not MIN_CHUNK_SIZE_MB <= chunk_size_mb <= MAX_CHUNK_SIZE_MB:
            raise ValueError(
                f"chunk_size_mb must be between {MIN_CHUNK_SIZE_MB} and {MAX_CHUNK_SIZE_MB}, "
                f"got {chunk_size_mb}"
            )
        self.chunk_size_mb = chunk_size_mb

    async def get_duration(self, path: Path) -> float:
        """Read the duration from the ``ffmpeg -i`` banner.

        Raises:
            SegmentationError: If no duration timestamp is found
        """
        _, stdout, stderr = await _run(build_probe_cmd(path))
        duration = parse_duration(stderr) or parse_duration(stdout)
        if duration is None:
            raise SegmentationError(
                f"Could not determine the duration of {path.name}",
                hint="The file may be corrupt or not an audio file. Try re-exporting it as MP3.",
            )
        return duration

    async def split(self, audio: AudioFile, context: "RunContext") -> List[Segment]:
        """Split ``audio`` into segments inside the run's scratch directory.

        A file that fits in one segment is copied unchanged as ``chunk-000``.

        Args:
            audio: Validated source recording
            context: Per-run context owning the scratch directory

        Returns:
            Segments ordered by index 0..N-1

        Raises:
            SegmentationError: If the duration cannot be read or ffmpeg fails
        """
        output_dir = context.ensure_scratch_dir()
        chunk_count = calculate_chunk_count(audio.size_bytes, self.chunk_size_mb)
        logger.info(
            f"Full file size: {audio.size_mb:.2f}MB. Chunk size: {self.chunk_size_mb}MB. "
            f"Expected number of chunks: {chunk_count}"
        )

        if chunk_count == 1:
            target = output_dir / f"{SEGMENT_PATTERN % 0}{audio.path.suffix}"
            await asyncio.to_thread(shutil.copyfile, audio.path, target)
            logger.info(f"Created 1 chunk: {target.name}")
            return [Segment(index=0, path=target)]

        total_seconds = await self.get_duration(audio.path)
        segment_seconds = math.ceil(total_seconds / chunk_count)
        logger.info(f"Splitting {total_seconds:.2f}s of audio into {segment_seconds}s segments")

        returncode, _, stderr = await _run(build_segment_cmd(audio.path, output_dir, segment_seconds))
        if returncode != 0:
            logger.debug(f"ffmpeg output:\n{stderr}")
            raise SegmentationError(
                f"ffmpeg failed to split {audio.path.name} (exit code {returncode})",
                hint="Check that the file plays correctly, or convert it to MP3 and try again.",
            )

        paths = sorted(output_dir.glob(f"chunk-*{audio.path.suffix}"))
        if not paths:
            raise SegmentationError(f"ffmpeg produced no segments for {audio.path.name}")

        segments = [Segment(index=i, path=p) for i, p in enumerate(paths)]
        logger.info(f"Created {len(segments)} chunks")
        return segments

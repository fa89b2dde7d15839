"""FFmpeg/ffprobe command construction and output parsing.

Kept free of I/O so the segmenter's subprocess handling can be tested with
the commands and parsers in isolation.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import List, Optional

SEGMENT_PATTERN = "chunk-%03d"

_DURATION_PATTERN = re.compile(r"Duration:\s*(\d{2}):(\d{2}):(\d{2})\.(\d{2})")


def build_probe_cmd(input_path: Path) -> List[str]:
    """Build ``ffmpeg -i <file>``; the duration is read from its stderr banner.

    The command exits non-zero because no output is given, so callers only
    parse its output and ignore the exit code.
    """
    return ["ffmpeg", "-i", str(input_path)]


def build_segment_cmd(input_path: Path, output_dir: Path, segment_seconds: int) -> List[str]:
    """Build the stream-copy command splitting ``input_path`` into fixed-duration files.

    Output files are ``chunk-000<ext>``, ``chunk-001<ext>``... in ``output_dir``,
    keeping the source extension.

    Args:
        input_path: Source recording
        output_dir: Scratch directory for the segments
        segment_seconds: Target duration of each segment

    Returns:
        Command argument list
    """
    output_pattern = output_dir / f"{SEGMENT_PATTERN}{input_path.suffix}"
    return [
        "ffmpeg",
        "-i",
        str(input_path),
        "-f",
        "segment",
        "-segment_time",
        str(segment_seconds),
        "-c",
        "copy",
        "-loglevel",
        "verbose",
        str(output_pattern),
    ]


def build_ffprobe_duration_cmd(input_path: Path) -> List[str]:
    """Build an ffprobe call printing the container duration as JSON."""
    return [
        "ffprobe",
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_entries",
        "format=duration",
        str(input_path),
    ]


def parse_duration(output: str) -> Optional[float]:
    """Parse the first ``Duration: HH:MM:SS.cc`` timestamp from ffmpeg output.

    Returns:
        Duration in seconds, or None if no timestamp is present
    """
    match = _DURATION_PATTERN.search(output)
    if not match:
        return None
    hours, minutes, seconds, hundredths = (int(part) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds + hundredths / 100


def parse_ffprobe_duration(output: str) -> Optional[float]:
    """Read ``format.duration`` from ffprobe JSON output; None if absent or invalid."""
    try:
        data = json.loads(output)
        duration = float(data.get("format", {}).get("duration", 0))
    except (ValueError, TypeError, AttributeError):
        return None
    return duration if duration > 0 else None

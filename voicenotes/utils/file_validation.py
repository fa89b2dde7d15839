"""Size and format guard for source recordings.

The module offers two validation styles:
1. **Standard validator** (validate_audio_file): Raises ValidationError on failure
2. **Safe validator** (safe_validate_audio_file): Returns None on failure

Use the standard validator at the start of a pipeline run, where the error
message and hint must reach the user. Use the safe validator when filtering
candidate files.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from ..models.audio import AudioFile
from .errors import VoiceNotesError

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 200_000_000
SUPPORTED_EXTENSIONS = (".mp3", ".m4a", ".wav", ".mp4", ".mpeg", ".mpga", ".webm")


class ValidationError(VoiceNotesError):
    """Raised when a source recording cannot be processed.

    The original exception (FileNotFoundError, PermissionError) is preserved
    in the exception chain for debugging.
    """


def validate_audio_file(
    audio_file_path: Path | str,
    max_file_size: Optional[int] = None,
    allowed_extensions: Optional[Iterable[str]] = None,
) -> AudioFile:
    """Validate that a recording exists, has a supported type and fits the size limit.

    Args:
        audio_file_path: Path to the recording (Path or string)
        max_file_size: Maximum file size in bytes (default 200 MB)
        allowed_extensions: Lower-case extensions including the dot
            (default: mp3, m4a, wav, mp4, mpeg, mpga, webm)

    Returns:
        AudioFile describing the validated recording

    Raises:
        ValidationError: If the file is missing, unreadable, of an unsupported
            type, or too large

    Example:
        >>> validate_audio_file('meeting.mp3').size_mb
        12.4
    """
    file_path = Path(audio_file_path)
    limit = DEFAULT_MAX_FILE_SIZE if max_file_size is None else max_file_size
    extensions = tuple(ext.lower() for ext in (allowed_extensions or SUPPORTED_EXTENSIONS))

    try:
        if not file_path.is_file():
            raise FileNotFoundError(str(file_path))
        size_bytes = file_path.stat().st_size
        if not os.access(file_path, os.R_OK):
            raise PermissionError(str(file_path))
    except FileNotFoundError as e:
        logger.error(f"Audio file not found: {file_path}")
        raise ValidationError(
            f"Audio file not found: {file_path}",
            hint="Check that the path is correct and the file has finished uploading.",
        ) from e
    except PermissionError as e:
        logger.error(f"Permission denied accessing file: {file_path}")
        raise ValidationError(f"Cannot access file: {file_path}") from e

    type_tag = file_path.suffix.lower()
    if type_tag not in extensions:
        logger.error(f"Unsupported audio file type: {type_tag or '(none)'}")
        raise ValidationError(
            f"Unsupported file type '{type_tag or file_path.name}'.",
            hint=f"Supported file types are: {', '.join(extensions)}.",
        )

    readable_size = size_bytes / 1_000_000
    if size_bytes > limit:
        raise ValidationError(
            f"File is too large ({readable_size:.1f} MB). "
            f"Files must be {limit / 1_000_000:.0f} MB or smaller.",
            hint="Compress the file, or split it into shorter recordings and process each one.",
        )

    logger.info(f"File size: {readable_size:.1f} MB")
    return AudioFile(path=file_path, size_bytes=size_bytes, type_tag=type_tag.lstrip("."))


def safe_validate_audio_file(
    audio_file_path: Path | str,
    max_file_size: Optional[int] = None,
    allowed_extensions: Optional[Iterable[str]] = None,
) -> Optional[AudioFile]:
    """Safe wrapper for audio file validation that returns None instead of raising.

    Example:
        >>> files = ['a.mp3', 'notes.txt', 'missing.wav']
        >>> valid = [f for f in files if safe_validate_audio_file(f)]
    """
    try:
        return validate_audio_file(audio_file_path, max_file_size, allowed_extensions)
    except ValidationError:
        return None

"""Scratch directory handling for segment files.

Scratch directories are created with restrictive permissions and removed
explicitly by the caller (see ``RunContext.cleanup``).
"""
from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def create_secure_temp_directory(
    prefix: str = "voicenotes-",
    parent: Optional[Path] = None,
    permissions: int = 0o700,
) -> Path:
    """Create a uniquely named scratch directory with restrictive permissions.

    Args:
        prefix: Directory name prefix
        parent: Directory to create it in (defaults to the system temp dir)
        permissions: Directory permissions in octal (default 0o700)

    Returns:
        Path to the new directory
    """
    if parent is not None:
        parent.mkdir(parents=True, exist_ok=True)
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=str(parent) if parent else None))

    try:
        temp_dir.chmod(permissions)
    except OSError as e:
        logger.warning(f"Failed to set permissions on {temp_dir}: {e}")

    logger.debug(f"Created scratch directory: {temp_dir}")
    return temp_dir


def remove_temp_directory(temp_dir: Path) -> bool:
    """Remove a scratch directory and everything in it.

    Failures are logged, never raised, so cleanup cannot mask the error that
    triggered it.

    Returns:
        True if the directory is gone afterwards
    """
    try:
        if temp_dir.exists():
            shutil.rmtree(temp_dir)
            logger.debug(f"Cleaned up temporary directory: {temp_dir}")
        return True
    except OSError as e:
        logger.warning(f"Failed to cleanup temp directory {temp_dir}: {e}")
        return False


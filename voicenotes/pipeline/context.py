"""Per-run state passed to every pipeline stage."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..utils.secure_temp import create_secure_temp_directory, remove_temp_directory

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """State owned by one pipeline run.

    Attributes:
        source_path: Recording being processed
        temp_root: Parent for the scratch directory (system temp dir if None)
        run_id: Short unique identifier used in logs and directory names
        started_at: Wall-clock start of the run
        scratch_dir: Directory holding segment files, created on first use
    """

    source_path: Path
    temp_root: Optional[Path] = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    started_at: datetime = field(default_factory=datetime.now)
    scratch_dir: Optional[Path] = None

    def ensure_scratch_dir(self) -> Path:
        """Create the scratch directory if it does not exist yet and return it."""
        if self.scratch_dir is None:
            self.scratch_dir = create_secure_temp_directory(
                prefix=f"voicenotes-{self.run_id}-", parent=self.temp_root
            )
        return self.scratch_dir

    def cleanup(self) -> None:
        """Remove the scratch directory. Safe to call more than once."""
        if self.scratch_dir is None:
            return
        if remove_temp_directory(self.scratch_dir):
            logger.debug(f"[{self.run_id}] Scratch directory removed")
            self.scratch_dir = None

"""Base exception for every fatal pipeline error."""
from __future__ import annotations

from typing import Optional


class VoiceNotesError(Exception):
    """Base class for errors that abort a pipeline run.

    Each error carries a human-readable remediation hint assembled where it
    is raised. ``str(error)`` includes the hint so that log lines and CLI
    output show it without extra handling.

    Attributes:
        message: What went wrong
        hint: What the user can do about it (may be None)
    """

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n\n{self.hint}"
        return self.message

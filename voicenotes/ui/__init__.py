"""Console output."""

from .console import ConsoleManager

__all__ = ["ConsoleManager"]

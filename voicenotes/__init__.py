"""Audio recording to structured report pipeline."""

__version__ = "1.0.0"

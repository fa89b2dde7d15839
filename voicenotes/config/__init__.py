"""Configuration management using environment variables."""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from ..utils.retry import COMPLETION_RETRY_POLICY, TRANSCRIPTION_RETRY_POLICY, RetryConfig

logger = logging.getLogger(__name__)


def _load_environment() -> None:
    """Load the first .env file found in the current, parent or home directory."""
    for env_path in (Path(".env"), Path("../.env"), Path.home() / ".env"):
        if env_path.exists():
            load_dotenv(env_path, override=False)
            logger.debug(f"Loaded environment from {env_path}")
            break


def _parse_bool(value: str | bool | None) -> bool:
    """Parse boolean value from various formats."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on", "enabled")
    return bool(value)


def _parse_list(value: str | List[str] | None, delimiter: str = ",") -> List[str]:
    """Parse list value from string or return as-is if already a list."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [item.strip() for item in value.split(delimiter) if item.strip()]
    return [] if value is None else [value]


def _getenv(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


def _getenv_int(key: str, default: int) -> int:
    """Get integer environment variable with validation.

    Raises:
        ValueError: If value cannot be parsed as integer
    """
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid integer value for {key}='{value}'. "
            f"Expected integer, got: {value}"
        ) from e


def _getenv_optional_int(key: str) -> Optional[int]:
    value = os.getenv(key)
    return _getenv_int(key, 0) if value else None


def _getenv_float(key: str, default: float) -> float:
    """Get float environment variable with validation.

    Raises:
        ValueError: If value cannot be parsed as float
    """
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid float value for {key}='{value}'. "
            f"Expected float, got: {value}"
        ) from e


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # ========== API Keys ==========
    OPENAI_API_KEY: Optional[str] = field(default_factory=lambda: _getenv("OPENAI_API_KEY") or None)
    ANTHROPIC_API_KEY: Optional[str] = field(default_factory=lambda: _getenv("ANTHROPIC_API_KEY") or None)

    # ========== Provider Settings ==========
    completion_provider: str = field(default_factory=lambda: _getenv("COMPLETION_PROVIDER", "openai").lower())
    openai_chat_model: str = field(default_factory=lambda: _getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini"))
    anthropic_model: str = field(default_factory=lambda: _getenv("ANTHROPIC_MODEL", "claude-3-5-haiku-20241022"))
    transcription_model: str = field(default_factory=lambda: _getenv("TRANSCRIPTION_MODEL", "whisper-1"))

    # ========== File Handling ==========
    max_file_size: int = field(default_factory=lambda: _getenv_int("MAX_FILE_SIZE", 200_000_000))
    allowed_extensions: List[str] = field(
        default_factory=lambda: _parse_list(
            _getenv("ALLOWED_EXTENSIONS", ".mp3,.m4a,.wav,.mp4,.mpeg,.mpga,.webm")
        )
    )
    temp_dir: Optional[Path] = field(default_factory=lambda: Path(_getenv("TEMP_DIR")) if _getenv("TEMP_DIR") else None)
    chunk_size_mb: int = field(default_factory=lambda: _getenv_int("CHUNK_SIZE_MB", 24))
    fail_on_no_duration: bool = field(default_factory=lambda: _parse_bool(_getenv("FAIL_ON_NO_DURATION", "false")))

    # ========== Summarization ==========
    max_tokens_per_chunk: Optional[int] = field(default_factory=lambda: _getenv_optional_int("MAX_TOKENS_PER_CHUNK"))
    period_search_radius: int = field(default_factory=lambda: _getenv_int("PERIOD_SEARCH_RADIUS", 100))
    summary_options: List[str] = field(default_factory=lambda: _parse_list(_getenv("SUMMARY_OPTIONS", "summary,main_points,action_items")))
    verbosity: str = field(default_factory=lambda: _getenv("SUMMARY_VERBOSITY", "Medium").capitalize())
    temperature: int = field(default_factory=lambda: _getenv_int("SUMMARY_TEMPERATURE", 2))

    # ========== Language Settings ==========
    transcript_language: Optional[str] = field(default_factory=lambda: _getenv("TRANSCRIPT_LANGUAGE") or None)
    summary_language: Optional[str] = field(default_factory=lambda: _getenv("SUMMARY_LANGUAGE") or None)
    title_language: Optional[str] = field(default_factory=lambda: _getenv("TITLE_LANGUAGE") or None)
    whisper_prompt: str = field(default_factory=lambda: _getenv("WHISPER_PROMPT", "Hello, welcome to my lecture."))

    # ========== Concurrency ==========
    transcription_max_concurrent: int = field(default_factory=lambda: _getenv_int("TRANSCRIPTION_MAX_CONCURRENT", 30))
    transcription_min_interval: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTION_MIN_INTERVAL", 1 / 30))
    summarization_max_concurrent: int = field(default_factory=lambda: _getenv_int("SUMMARIZATION_MAX_CONCURRENT", 35))
    moderation_max_concurrent: int = field(default_factory=lambda: _getenv_int("MODERATION_MAX_CONCURRENT", 500))

    # ========== Feature Flags ==========
    disable_moderation: bool = field(default_factory=lambda: _parse_bool(_getenv("DISABLE_MODERATION", "false")))

    # ========== Retry Settings ==========
    max_retries: int = field(default_factory=lambda: _getenv_int("MAX_API_RETRIES", 3))
    retry_delay: float = field(default_factory=lambda: _getenv_float("API_RETRY_DELAY", 1.0))
    max_retry_delay: float = field(default_factory=lambda: _getenv_float("MAX_RETRY_DELAY", 30.0))

    # ========== Logging ==========
    log_level: str = field(default_factory=lambda: _getenv("LOG_LEVEL", "INFO").upper())
    log_dir: Optional[Path] = field(default_factory=lambda: Path(_getenv("LOG_DIR")) if _getenv("LOG_DIR") else None)
    verbose: bool = field(default_factory=lambda: _parse_bool(_getenv("VERBOSE", "false")))

    def __repr__(self) -> str:
        """Return repr with redacted API keys for security."""
        sensitive_fields = {"OPENAI_API_KEY", "ANTHROPIC_API_KEY"}
        items = []
        for field_name in self.__dataclass_fields__:
            value = getattr(self, field_name)
            if field_name in sensitive_fields and value:
                items.append(f"{field_name}='***REDACTED***'")
            else:
                items.append(f"{field_name}={value!r}")
        return f"Config({', '.join(items)})"

    def api_key_for(self, provider: str) -> Optional[str]:
        """Return the API key for a provider name ('openai' or 'anthropic')."""
        return {"openai": self.OPENAI_API_KEY, "anthropic": self.ANTHROPIC_API_KEY}.get(provider)

    @property
    def log_level_value(self) -> int:
        """Numeric level for ``log_level``; INFO when the name is not a logging level."""
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.INFO

    def retry_policy(self, base: RetryConfig) -> RetryConfig:
        """Apply the configured attempt budget and delays to a named retry policy.

        Raises:
            ValueError: If the retry settings are out of range
        """
        try:
            return replace(
                base,
                max_attempts=self.max_retries,
                base_delay=self.retry_delay,
                max_delay=self.max_retry_delay,
            )
        except ValueError as e:
            raise ValueError(
                f"Invalid retry settings (MAX_API_RETRIES={self.max_retries}, "
                f"API_RETRY_DELAY={self.retry_delay}, MAX_RETRY_DELAY={self.max_retry_delay}): {e}"
            ) from e

    def validate(self, provider: Optional[str] = None) -> None:
        """Check that the keys needed for a run are present and the settings are usable.

        Transcription and moderation always use OpenAI, so its key is required
        regardless of the completion provider.

        Raises:
            ValueError: If a required key is missing or a setting is out of range
        """
        provider = provider or self.completion_provider
        needed = {"openai", provider}
        for name in sorted(needed):
            if not self.api_key_for(name):
                env_name = f"{name.upper()}_API_KEY"
                raise ValueError(
                    f"{env_name} environment variable not found or invalid. "
                    "Set it in your environment or create a .env file with: "
                    f"{env_name}=your-api-key-here"
                )

        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(
                f"Invalid LOG_LEVEL '{self.log_level}'. "
                "Expected one of DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )
        for policy in (TRANSCRIPTION_RETRY_POLICY, COMPLETION_RETRY_POLICY):
            self.retry_policy(policy)


# Singleton instance with thread-safe initialization
_config_instance: Optional[Config] = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get global config instance (singleton pattern, thread-safe)."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            # Double-check pattern to prevent race conditions
            if _config_instance is None:
                _load_environment()
                _config_instance = Config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached instance so the next get_config() re-reads the environment."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = ["Config", "get_config", "reset_config"]

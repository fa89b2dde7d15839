"""Factory for creating remote service providers from configuration.

Example:
    >>> completer = create_completion_provider("anthropic", get_config())
    >>> result = await completer.complete(system, user, temperature=0.2)
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from ..config import Config
from .anthropic_provider import AnthropicCompleter
from .base import BaseCompletionProvider, BaseModerationProvider, BaseTranscriptionProvider
from .openai_provider import OpenAICompleter, OpenAIModerator, OpenAITranscriber

logger = logging.getLogger(__name__)


def _openai_completer(config: Config) -> BaseCompletionProvider:
    return OpenAICompleter(api_key=config.OPENAI_API_KEY, model=config.openai_chat_model)


def _anthropic_completer(config: Config) -> BaseCompletionProvider:
    return AnthropicCompleter(api_key=config.ANTHROPIC_API_KEY, model=config.anthropic_model)


# Registry of completion providers: maps provider names to builders
_COMPLETION_PROVIDERS: Dict[str, Callable[[Config], BaseCompletionProvider]] = {
    "openai": _openai_completer,
    "anthropic": _anthropic_completer,
}


def get_available_completion_providers() -> List[str]:
    """Get list of registered completion provider names."""
    return list(_COMPLETION_PROVIDERS)


def create_completion_provider(name: str, config: Config) -> BaseCompletionProvider:
    """Create and validate a completion provider.

    Args:
        name: Provider name ('openai' or 'anthropic'), case-insensitive
        config: Application configuration supplying keys and model names

    Returns:
        Configured provider instance

    Raises:
        ValueError: If the name is unknown or the provider is not configured
    """
    key = name.lower()
    builder = _COMPLETION_PROVIDERS.get(key)
    if builder is None:
        raise ValueError(
            f"Unknown completion provider '{name}'. "
            f"Available: {', '.join(get_available_completion_providers())}"
        )

    if not config.api_key_for(key):
        raise ValueError(
            f"Provider '{key}' is not properly configured: set {key.upper()}_API_KEY"
        )
    provider = builder(config)

    logger.info(f"Using completion provider: {provider.get_provider_name()}")
    return provider


def create_transcription_provider(config: Config) -> BaseTranscriptionProvider:
    """Create the speech-to-text provider.

    Raises:
        ValueError: If the OpenAI key is missing
    """
    if not config.OPENAI_API_KEY:
        raise ValueError("Transcription provider is not properly configured: set OPENAI_API_KEY")
    return OpenAITranscriber(api_key=config.OPENAI_API_KEY, model=config.transcription_model)


def create_moderation_provider(config: Config) -> BaseModerationProvider:
    """Create the moderation provider.

    Raises:
        ValueError: If the OpenAI key is missing
    """
    if not config.OPENAI_API_KEY:
        raise ValueError("Moderation provider is not properly configured: set OPENAI_API_KEY")
    return OpenAIModerator(api_key=config.OPENAI_API_KEY)

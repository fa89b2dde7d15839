"""Anthropic chat completion, adapted into the common completion shape."""

from __future__ import annotations

import logging
from typing import Optional

from anthropic import AsyncAnthropic

from .base import BaseCompletionProvider, CompletionResult, CompletionUsage

logger = logging.getLogger(__name__)

DEFAULT_ANTHROPIC_MODEL = "claude-3-5-haiku-20241022"


class AnthropicCompleter(BaseCompletionProvider):
    """Claude messages API.

    The response is reshaped so callers never see provider-specific fields:
    the first text block becomes ``content`` and ``input_tokens`` /
    ``output_tokens`` become prompt/completion usage.
    """

    pricing_key = "anthropic"
    max_output_tokens = 4096

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_ANTHROPIC_MODEL,
        client: Optional[AsyncAnthropic] = None,
    ):
        super().__init__(api_key)
        self.model = model
        self._client = client or AsyncAnthropic(api_key=api_key, max_retries=0)

    def get_provider_name(self) -> str:
        return f"Anthropic {self.model}"

    async def complete(self, system: str, user: str, temperature: float) -> CompletionResult:
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_output_tokens,
            system=system,
            messages=[{"role": "user", "content": user}],
            temperature=temperature,
        )

        text = next(
            (block.text for block in response.content if getattr(block, "type", None) == "text"),
            "",
        )
        return CompletionResult(
            content=text,
            usage=CompletionUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
            ),
            model=response.model or self.model,
        )

"""OpenAI-backed providers: Whisper transcription, chat completion, moderation."""

from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from openai import AsyncOpenAI

from .base import (
    BaseCompletionProvider,
    BaseModerationProvider,
    BaseTranscriptionProvider,
    CompletionResult,
    CompletionUsage,
)

logger = logging.getLogger(__name__)

DEFAULT_TRANSCRIPTION_MODEL = "whisper-1"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"


def _build_client(api_key: Optional[str], client: Optional[AsyncOpenAI]) -> AsyncOpenAI:
    # Retries are driven by the services' own policies, so the SDK must not retry.
    return client or AsyncOpenAI(api_key=api_key, max_retries=0)


class OpenAITranscriber(BaseTranscriptionProvider):
    """Whisper speech-to-text via the OpenAI audio API."""

    pricing_key = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_TRANSCRIPTION_MODEL,
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(api_key)
        self.model = model
        self._client = _build_client(api_key, client)

    def get_provider_name(self) -> str:
        return f"OpenAI {self.model}"

    async def transcribe(
        self,
        audio_file: BinaryIO,
        *,
        language: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> str:
        kwargs = {"model": self.model, "file": audio_file}
        if language:
            kwargs["language"] = language
        if prompt:
            kwargs["prompt"] = prompt

        response = await self._client.audio.transcriptions.create(**kwargs)
        return response.text


class OpenAICompleter(BaseCompletionProvider):
    """Chat completion with JSON-object structured output."""

    pricing_key = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_CHAT_MODEL,
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(api_key)
        self.model = model
        self._client = _build_client(api_key, client)

    def get_provider_name(self) -> str:
        return f"OpenAI {self.model}"

    async def complete(self, system: str, user: str, temperature: float) -> CompletionResult:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
        )

        usage = response.usage
        return CompletionResult(
            content=response.choices[0].message.content or "",
            usage=CompletionUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
            ),
            model=response.model or self.model,
        )


class OpenAIModerator(BaseModerationProvider):
    """Moderation endpoint; returns the first result's ``flagged`` value."""

    pricing_key = "openai"

    def __init__(self, api_key: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        super().__init__(api_key)
        self._client = _build_client(api_key, client)

    def get_provider_name(self) -> str:
        return "OpenAI moderation"

    async def is_flagged(self, text: str) -> Optional[bool]:
        response = await self._client.moderations.create(input=text)
        if not response.results:
            return None
        return response.results[0].flagged

"""
Gemini-backed implementation of the provider capability interface.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping

from google import genai
from google.genai import types

from dreamtale.common import (
    CompletionCallable,
    ContentPart,
    ImageBackend,
    ProviderResponse,
    call_chat_completion,
    json_schema_response_format,
)

logger = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL = "gemini/gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_AUDIO_MODEL = "gemini-2.5-flash-preview-tts"


class GeminiProviderClient:
    """
    Talks to Gemini for all three request kinds.

    Structured story text goes through LiteLLM so any model with JSON schema
    support can be swapped in via ``DREAMTALE_TEXT_MODEL``. Illustrations and
    narration use the ``google-genai`` async client directly because they need
    inline binary parts in the response.

    Parameters
    ----------
    api_key:
        Gemini API key. Falls back to ``GEMINI_API_KEY`` then ``GOOGLE_API_KEY``.
    text_api_key:
        Key for the LiteLLM text model. Falls back to ``DREAMTALE_TEXT_API_KEY``. For
        ``gemini/`` models the Gemini key is reused; other models get no explicit key so
        LiteLLM reads the provider's own environment variable (e.g. ``OPENAI_API_KEY``).
    text_model / image_model / audio_model:
        Model overrides. Fall back to ``DREAMTALE_*_MODEL`` environment variables.
    client:
        Optional pre-configured :class:`google.genai.Client`. Mainly useful for testing.
    completion_fn:
        Optional replacement for :func:`dreamtale.common.call_chat_completion`.
    image_backend:
        Optional object with a ``generate_image`` coroutine that replaces the Gemini
        image call (e.g. :class:`ReplicateImageGenerator`).
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        text_api_key: str | None = None,
        text_model: str | None = None,
        image_model: str | None = None,
        audio_model: str | None = None,
        client: genai.Client | None = None,
        completion_fn: CompletionCallable | None = None,
        image_backend: ImageBackend | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        if not self._api_key and client is None:
            raise ValueError("Gemini API key is required. Set GEMINI_API_KEY or pass api_key.")

        self._text_model = (
            text_model
            or os.getenv("DREAMTALE_TEXT_MODEL")
            or os.getenv("LITELLM_MODEL")
            or DEFAULT_TEXT_MODEL
        )
        self._text_api_key = text_api_key or os.getenv("DREAMTALE_TEXT_API_KEY")
        if self._text_api_key is None and self._text_model.startswith("gemini/"):
            self._text_api_key = self._api_key
        self._image_model = image_model or os.getenv("DREAMTALE_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL
        self._audio_model = audio_model or os.getenv("DREAMTALE_AUDIO_MODEL") or DEFAULT_AUDIO_MODEL
        self._client = client or genai.Client(api_key=self._api_key)
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._image_backend = image_backend

    @property
    def text_model(self) -> str:
        return self._text_model

    @property
    def image_model(self) -> str:
        return self._image_model

    @property
    def audio_model(self) -> str:
        return self._audio_model

    async def generate_structured_text(self, prompt: str, schema: Mapping[str, Any]) -> str:
        logger.debug("Structured text request to %s.", self._text_model)
        result = await self._completion_fn(
            model=self._text_model,
            messages=[{"role": "user", "content": prompt}],
            api_key=self._text_api_key,
            response_format=json_schema_response_format("story_scenes", schema),
        )
        return result.text

    async def generate_image(
        self,
        prompt: str,
        reference_image: Any | None = None,
    ) -> ProviderResponse:
        if self._image_backend is not None:
            return await self._image_backend.generate_image(prompt, reference_image=reference_image)

        contents: list[Any] = []
        if reference_image is not None:
            contents.append(
                types.Part.from_bytes(data=reference_image.data, mime_type=reference_image.mime_type)
            )
        contents.append(types.Part.from_text(text=prompt))

        logger.debug(
            "Image request to %s (%s reference photo).",
            self._image_model,
            "with" if reference_image is not None else "without",
        )
        response = await self._client.aio.models.generate_content(
            model=self._image_model,
            contents=contents,
            config=types.GenerateContentConfig(response_modalities=["IMAGE"]),
        )
        return response_from_genai(response)

    async def generate_audio(self, prompt: str, voice_name: str) -> ProviderResponse:
        logger.debug("Narration request to %s with voice %s.", self._audio_model, voice_name)
        response = await self._client.aio.models.generate_content(
            model=self._audio_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice_name),
                    ),
                ),
            ),
        )
        return response_from_genai(response)


def response_from_genai(response: Any) -> ProviderResponse:
    """
    Normalize a ``GenerateContentResponse`` into a :class:`ProviderResponse`.

    Only the first candidate is considered. A missing candidate, content or parts
    list yields an empty response.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ProviderResponse.empty()

    content = getattr(candidates[0], "content", None)
    raw_parts = getattr(content, "parts", None) if content is not None else None
    if not raw_parts:
        return ProviderResponse.empty()

    parts: list[ContentPart] = []
    for raw in raw_parts:
        inline = getattr(raw, "inline_data", None)
        data = getattr(inline, "data", None) if inline is not None else None
        parts.append(
            ContentPart(
                text=getattr(raw, "text", None),
                data=data or None,
                mime_type=getattr(inline, "mime_type", None) if inline is not None else None,
            )
        )
    return ProviderResponse.from_parts(parts)

"""
Best-effort narration of the assembled story.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dreamtale.common import ProviderClient

from .prompting import build_narration_prompt

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "Kore"


@dataclass(frozen=True)
class NarrationAudio:
    """Narrated story audio as returned by the provider."""

    data: bytes
    mime_type: str | None = None


class StoryNarrator:
    """
    Issues a single narration request; a missing audio payload is not an error.
    """

    def __init__(self, provider: ProviderClient, *, voice_name: str | None = None) -> None:
        self._provider = provider
        self._voice_name = voice_name or os.getenv("DREAMTALE_VOICE") or DEFAULT_VOICE

    @property
    def voice_name(self) -> str:
        return self._voice_name

    async def narrate(self, full_text: str) -> NarrationAudio | None:
        prompt = build_narration_prompt(full_text)
        response = await self._provider.generate_audio(prompt, self._voice_name)

        part = response.first_inline()
        if part is None or part.data is None:
            logger.warning("Narration audio unavailable; continuing without it.")
            return None

        return NarrationAudio(data=part.data, mime_type=part.mime_type)

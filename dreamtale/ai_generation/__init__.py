"""
AI image and narration generation package for DreamTale.
"""

from .gemini_service import GeminiProviderClient, response_from_genai
from .illustration_service import SceneIllustrator
from .narration_service import DEFAULT_VOICE, NarrationAudio, StoryNarrator
from .prompting import (
    StorybookPrompt,
    build_fallback_illustration_prompt,
    build_illustration_prompt,
    build_narration_prompt,
)
from .replicate_service import ReplicateImageGenerator

__all__ = [
    "GeminiProviderClient",
    "response_from_genai",
    "ReplicateImageGenerator",
    "SceneIllustrator",
    "StoryNarrator",
    "NarrationAudio",
    "DEFAULT_VOICE",
    "StorybookPrompt",
    "build_illustration_prompt",
    "build_fallback_illustration_prompt",
    "build_narration_prompt",
]

"""
Service layer for producing the scene-by-scene story text.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from dreamtale.common import ProviderClient, TextGenerationError

from .plan import GenerationPlan
from .prompting import StoryPrompt, build_scenes_schema, build_story_prompt
from .request import StoryRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scene:
    """
    One narrative unit of the story, numbered from 1 in reading order.
    """

    index: int
    text: str

    def as_dict(self) -> dict[str, Any]:
        return {"index": self.index, "text": self.text}


def join_scenes(scenes: Sequence[Scene]) -> str:
    """Concatenate scene texts in order, separated by a blank line."""
    return "\n\n".join(scene.text for scene in scenes)


class StoryTextGenerator:
    """
    Turns a story request into exactly ``plan.scene_count`` scenes.

    Scene texts are stripped of surrounding whitespace, and a blank or non-string
    entry fails the run with :class:`TextGenerationError`: every scene has to carry
    text the illustration prompts can depict.
    """

    def __init__(self, provider: ProviderClient) -> None:
        self._provider = provider

    async def generate(self, request: StoryRequest, plan: GenerationPlan) -> tuple[Scene, ...]:
        """
        Request the story text and validate its structure. No retries are attempted.
        """
        prompt: StoryPrompt = build_story_prompt(request, plan)
        schema = build_scenes_schema(plan)

        logger.debug(
            "Requesting %d scenes (~%d words) for %s.",
            plan.scene_count,
            plan.target_word_count,
            request.subject_name,
        )
        raw_text = await self._provider.generate_structured_text(prompt.as_text(), schema)

        texts = self._parse_scenes_json(raw_text)
        if len(texts) != plan.scene_count:
            raise TextGenerationError(
                f"Story generation failed: expected {plan.scene_count} scenes, "
                f"received {len(texts)}."
            )

        scenes = tuple(Scene(index=number, text=text) for number, text in enumerate(texts, start=1))
        logger.info("Story text ready with %d scenes.", len(scenes))
        return scenes

    def _parse_scenes_json(self, raw_text: str | None) -> list[str]:
        payload = _strip_code_fence(raw_text or "")
        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise TextGenerationError("Story generation failed: response was not valid JSON.") from exc

        scenes = parsed.get("scenes") if isinstance(parsed, dict) else None
        if not isinstance(scenes, list):
            raise TextGenerationError("Story generation failed: response is missing a 'scenes' list.")

        texts: list[str] = []
        for position, item in enumerate(scenes, start=1):
            if not isinstance(item, str) or not item.strip():
                raise TextGenerationError(
                    f"Story generation failed: scene {position} is empty or not text."
                )
            texts.append(item.strip())
        return texts


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        lines = stripped.splitlines()[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        stripped = "\n".join(lines).strip()
    return stripped

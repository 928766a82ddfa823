"""
Prompt construction utilities for the DreamTale story text request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .plan import GenerationPlan
from .request import StoryRequest


@dataclass(frozen=True)
class StoryPrompt:
    """
    Container for the system and user prompts passed to the text model.
    """

    system: str
    user: str

    def as_text(self) -> str:
        return f"{self.system}\n\n{self.user}"


def build_scenes_schema(plan: GenerationPlan) -> dict[str, Any]:
    """
    JSON schema the story response must satisfy: an object with a required list of scenes.
    """
    return {
        "type": "object",
        "properties": {
            "scenes": {
                "type": "array",
                "description": f"The story divided into {plan.scene_count} scenes.",
                "items": {"type": "string"},
            }
        },
        "required": ["scenes"],
    }


def build_story_prompt(request: StoryRequest, plan: GenerationPlan) -> StoryPrompt:
    """
    Build the prompt pair used to solicit a bedtime story split into scenes.
    """
    system_prompt = f"""You are a gentle bedtime storyteller for young children.
You write magical, calming tales that help a child wind down before sleep.

Writing directives:
- Keep the tone warm, soothing and safe; avoid peril, violence or anything frightening.
- Let the main character drive the plot and give the special object a meaningful role.
- Use simple sentences that read aloud well.
- Always write in {request.story_language}.
- Respond only with JSON that matches the provided schema. Do not add commentary."""

    user_prompt = f"""Write a magical, soothing bedtime story for a child named {request.subject_name}.

Story details:
{request.summary_for_prompt()}

Requirements:
- Split the story into exactly {plan.scene_count} short scenes, one paragraph each.
- The whole story should be approximately {plan.target_word_count} words long.
- Return the scenes in reading order under the "scenes" key."""

    return StoryPrompt(system=system_prompt, user=user_prompt)

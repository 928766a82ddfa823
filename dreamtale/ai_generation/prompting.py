"""
Prompt construction utilities for DreamTale illustration and narration requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

ART_DIRECTION = (
    "Beautiful, dreamy picture-book illustration; soft painterly textures; gentle pastel palette; "
    "warm evening light; magical, tender and calming mood."
)

TEXT_GUARDRAIL = "Do not place any text, letters, captions or watermarks in the image."


@dataclass(frozen=True)
class StorybookPrompt:
    """Container for the image prompt and whether it expects a reference photo."""

    text: str
    uses_reference: bool


def build_illustration_prompt(scene_text: str) -> StorybookPrompt:
    """
    Build the photo-conditioned prompt: the photo inspires the hero but is not reproduced.
    """
    if not scene_text or not scene_text.strip():
        raise ValueError("scene_text must be a non-empty string.")

    sections = [
        "TASK\nCreate an illustration for this scene from a children's bedtime story:\n"
        f'"{scene_text.strip()}"',
        _format_bullet_section(
            "MAIN CHARACTER",
            [
                "Keep the hero consistent from one illustration to the next.",
                "Draw inspiration from the child in the attached photo, reimagined in a storybook style.",
                "Do not reproduce the photo literally.",
            ],
        ),
        _format_bullet_section("ART DIRECTION", [ART_DIRECTION]),
        TEXT_GUARDRAIL,
    ]
    return StorybookPrompt(text="\n\n".join(sections), uses_reference=True)


def build_fallback_illustration_prompt(scene_text: str, character: str) -> StorybookPrompt:
    """
    Build the unconditioned prompt that describes the hero in words instead of by photo.
    """
    if not scene_text or not scene_text.strip():
        raise ValueError("scene_text must be a non-empty string.")

    hero = character.strip() if character and character.strip() else "the hero of the story"
    sections = [
        "TASK\nCreate an illustration for this scene from a children's bedtime story:\n"
        f'"{scene_text.strip()}"',
        _format_bullet_section(
            "MAIN CHARACTER",
            [f"The main character is {hero}.", "Keep the hero consistent with the rest of the story."],
        ),
        _format_bullet_section("ART DIRECTION", [ART_DIRECTION]),
        TEXT_GUARDRAIL,
    ]
    return StorybookPrompt(text="\n\n".join(sections), uses_reference=False)


def build_narration_prompt(story_text: str) -> str:
    """
    Ask for a calm, soothing read-aloud of the complete story.
    """
    if not story_text or not story_text.strip():
        raise ValueError("story_text must be a non-empty string.")
    return f'Read this bedtime story to a child in a calm, soothing voice: "{story_text.strip()}"'


def _format_bullet_section(title: str, lines: Sequence[str]) -> str:
    bullet_block = "\n".join(f"- {line}" for line in lines if line.strip())
    return f"{title}\n{bullet_block}"

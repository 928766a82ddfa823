"""
Story generation utilities for crafting personalized DreamTale narratives.
"""

from .plan import DEFAULT_PLAN, PLAN_TABLE, GenerationPlan, resolve_plan
from .prompting import StoryPrompt, build_scenes_schema, build_story_prompt
from .request import ReferenceImage, StoryLength, StoryRequest
from .story_service import Scene, StoryTextGenerator, join_scenes

__all__ = [
    "StoryRequest",
    "StoryLength",
    "ReferenceImage",
    "GenerationPlan",
    "PLAN_TABLE",
    "DEFAULT_PLAN",
    "resolve_plan",
    "StoryPrompt",
    "build_scenes_schema",
    "build_story_prompt",
    "Scene",
    "StoryTextGenerator",
    "join_scenes",
]

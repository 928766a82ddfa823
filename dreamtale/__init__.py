"""
DreamTale package exposing story generation, illustration, narration and pipeline tooling.
"""

from .pipeline import (
    DreamTaleOrchestrator,
    ProgressEvent,
    ProgressReporter,
    StoryResult,
)
from .story_generation import GenerationPlan, ReferenceImage, StoryLength, StoryRequest, resolve_plan

__all__ = [
    "DreamTaleOrchestrator",
    "GenerationPlan",
    "ProgressEvent",
    "ProgressReporter",
    "ReferenceImage",
    "StoryLength",
    "StoryRequest",
    "StoryResult",
    "resolve_plan",
]

"""
End-to-end orchestration for DreamTale story, illustration and narration generation.
"""

from .pipeline import (
    DreamTaleOrchestrator,
    IllustratedScene,
    PipelineRun,
    PipelineState,
    StoryResult,
)
from .progress import ProgressCallback, ProgressEvent, ProgressReporter

__all__ = [
    "DreamTaleOrchestrator",
    "IllustratedScene",
    "PipelineRun",
    "PipelineState",
    "StoryResult",
    "ProgressCallback",
    "ProgressEvent",
    "ProgressReporter",
]

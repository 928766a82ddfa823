"""
Terminal failures raised by the DreamTale generation pipeline.

Every error carries a message that can be shown to the end user as-is. The
orchestrator fills in :attr:`StoryGenerationError.stage` with the pipeline
state that was active when the error surfaced.
"""

from __future__ import annotations


class StoryGenerationError(RuntimeError):
    """Base class for failures that abort a generation run."""

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class TextGenerationError(StoryGenerationError):
    """The story text was unparsable or did not contain the planned scene count."""


class ImageGenerationError(StoryGenerationError):
    """Both the photo-conditioned and the unconditioned attempt returned no content."""

    def __init__(self, message: str, *, scene_index: int, stage: str | None = None) -> None:
        super().__init__(message, stage=stage)
        self.scene_index = scene_index


class ImagePayloadMissingError(StoryGenerationError):
    """The provider returned content for a scene but no inline image data."""

    def __init__(self, message: str, *, scene_index: int, stage: str | None = None) -> None:
        super().__init__(message, stage=stage)
        self.scene_index = scene_index


class SceneImageCountMismatchError(StoryGenerationError):
    """The number of illustrations does not match the number of scenes."""

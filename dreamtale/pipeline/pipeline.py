"""
Orchestrates the full DreamTale pipeline from request to story, illustrations and narration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import yaml

from dreamtale.ai_generation import (
    GeminiProviderClient,
    NarrationAudio,
    SceneIllustrator,
    StoryNarrator,
)
from dreamtale.common import ProviderClient, SceneImageCountMismatchError, StoryGenerationError
from dreamtale.story_generation import (
    GenerationPlan,
    ReferenceImage,
    Scene,
    StoryRequest,
    StoryTextGenerator,
    join_scenes,
    resolve_plan,
)

from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPE = "image/png"


class PipelineState(str, Enum):
    PLANNING = "planning"
    TEXT_GENERATING = "text_generating"
    IMAGE_GENERATING = "image_generating"
    AUDIO_GENERATING = "audio_generating"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class IllustratedScene:
    """A scene paired with its illustration."""

    scene: Scene
    image: bytes
    mime_type: str = IMAGE_MIME_TYPE


@dataclass(frozen=True)
class StoryResult:
    """Aggregated output of the DreamTale pipeline."""

    full_text: str
    scenes: tuple[Scene, ...]
    images: tuple[bytes, ...]
    audio: bytes | None = None
    audio_mime_type: str | None = None
    plan: GenerationPlan | None = None

    def __post_init__(self) -> None:
        if len(self.images) != len(self.scenes):
            raise SceneImageCountMismatchError(
                f"Illustration failed: {len(self.scenes)} scenes but {len(self.images)} images."
            )

    @property
    def illustrated_scenes(self) -> list[IllustratedScene]:
        return [IllustratedScene(scene=scene, image=image) for scene, image in zip(self.scenes, self.images)]

    @property
    def has_audio(self) -> bool:
        return bool(self.audio)

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan": (
                {
                    "scene_count": self.plan.scene_count,
                    "target_word_count": self.plan.target_word_count,
                }
                if self.plan is not None
                else None
            ),
            "full_text": self.full_text,
            "scenes": [
                {
                    "index": scene.index,
                    "text": scene.text,
                    "image_mime_type": IMAGE_MIME_TYPE,
                    "image_bytes": len(image),
                }
                for scene, image in zip(self.scenes, self.images)
            ],
            "audio": (
                {"mime_type": self.audio_mime_type, "bytes": len(self.audio)}
                if self.audio
                else None
            ),
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)


@dataclass
class PipelineRun:
    """Mutable state of one generation run. A new run is created for every call."""

    request: StoryRequest
    plan: GenerationPlan
    reporter: ProgressReporter
    state: PipelineState = PipelineState.PLANNING
    scenes: tuple[Scene, ...] = ()
    images: list[bytes] = field(default_factory=list)
    failed_stage: PipelineState | None = None

    def transition(self, state: PipelineState) -> None:
        logger.debug("Pipeline state %s -> %s.", self.state.value, state.value)
        self.state = state


class DreamTaleOrchestrator:
    """
    High-level coordinator that chains together story, illustration and narration stages.

    Stages run strictly one after another, and scenes are illustrated one at a
    time in reading order. The first failing stage aborts the run.
    """

    def __init__(
        self,
        *,
        provider: ProviderClient | None = None,
        text_generator: StoryTextGenerator | None = None,
        illustrator: SceneIllustrator | None = None,
        narrator: StoryNarrator | None = None,
        voice_name: str | None = None,
    ) -> None:
        if provider is None and not (text_generator and illustrator and narrator):
            provider = GeminiProviderClient()
        self._text_generator = text_generator or StoryTextGenerator(provider)
        self._illustrator = illustrator or SceneIllustrator(provider)
        self._narrator = narrator or StoryNarrator(provider, voice_name=voice_name)
        self.last_run: PipelineRun | None = None

    async def run_from_mapping(
        self,
        request_data: Mapping[str, Any],
        reference_image: ReferenceImage,
        on_progress: ProgressCallback | None = None,
    ) -> StoryResult:
        """
        Build the request from raw form data and run the pipeline.
        """
        request = StoryRequest.from_mapping(request_data)
        return await self.run(request, reference_image, on_progress)

    async def run(
        self,
        request: StoryRequest,
        reference_image: ReferenceImage,
        on_progress: ProgressCallback | None = None,
    ) -> StoryResult:
        """
        Complete pipeline from request to story text, one illustration per scene, and narration.
        """
        plan = resolve_plan(request.length_tier)
        run = PipelineRun(
            request=request,
            plan=plan,
            reporter=ProgressReporter(plan.total_steps, on_progress),
        )
        self.last_run = run

        try:
            result = await self._execute(run, reference_image)
        except Exception as exc:
            run.failed_stage = run.state
            if isinstance(exc, StoryGenerationError) and exc.stage is None:
                exc.stage = run.state.value
            run.transition(PipelineState.FAILED)
            logger.exception("Story generation failed during %s.", run.failed_stage.value)
            raise

        run.transition(PipelineState.DONE)
        return result

    async def _execute(self, run: PipelineRun, reference_image: ReferenceImage) -> StoryResult:
        reporter = run.reporter
        plan = run.plan

        run.transition(PipelineState.TEXT_GENERATING)
        reporter.report("Dreaming up the story plot...", stage="story:preparing")
        run.scenes = await self._text_generator.generate(run.request, plan)
        full_text = join_scenes(run.scenes)
        reporter.advance("The story is written, starting the illustrations...", stage="story:generated")

        run.transition(PipelineState.IMAGE_GENERATING)
        for scene in run.scenes:
            reporter.report(
                f"Painting illustration {scene.index} of {plan.scene_count}...",
                stage="image:painting",
            )
            image = await self._illustrator.illustrate(
                scene,
                reference_image,
                run.request.character,
            )
            run.images.append(image)
            reporter.advance(
                f"Illustration {scene.index}/{plan.scene_count} is done.",
                stage="image:done",
            )

        if len(run.images) != plan.scene_count:
            raise SceneImageCountMismatchError(
                f"Illustration failed: expected {plan.scene_count} images, "
                f"created {len(run.images)}."
            )

        run.transition(PipelineState.AUDIO_GENERATING)
        reporter.report("Recording the narrator's voice...", stage="audio:recording")
        narration: NarrationAudio | None = await self._narrator.narrate(full_text)
        reporter.advance("Everything is ready!", stage="pipeline:complete")

        logger.info(
            "Story for %s ready: %d scenes, narration %s.",
            run.request.subject_name,
            len(run.scenes),
            "included" if narration is not None else "unavailable",
        )
        return StoryResult(
            full_text=full_text,
            scenes=run.scenes,
            images=tuple(run.images),
            audio=narration.data if narration is not None else None,
            audio_mime_type=narration.mime_type if narration is not None else None,
            plan=plan,
        )

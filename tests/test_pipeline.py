"""
End-to-end orchestrator tests against a scripted provider.
"""
import asyncio

import pytest
import yaml

from dreamtale.common import (
    ImageGenerationError,
    ImagePayloadMissingError,
    ProviderResponse,
    SceneImageCountMismatchError,
    TextGenerationError,
)
from dreamtale.pipeline import DreamTaleOrchestrator, PipelineState, StoryResult
from dreamtale.story_generation import Scene

from conftest import FakeProvider, image_response, scenes_payload, text_only_response


def run_pipeline(provider, request, reference_image, events=None):
    orchestrator = DreamTaleOrchestrator(provider=provider)
    callback = events.append if events is not None else None
    result = asyncio.run(orchestrator.run(request, reference_image, callback))
    return orchestrator, result


class TestSuccessfulRun:

    def test_short_story_example(self, story_request, reference_image):
        provider = FakeProvider(text_responses=[scenes_payload(6)])
        events = []

        orchestrator, result = run_pipeline(provider, story_request, reference_image, events)

        assert result.plan.scene_count == 6
        assert result.plan.target_word_count == 400
        assert len(provider.text_calls) == 1
        assert len(provider.image_calls) == 6
        assert len(provider.audio_calls) == 1
        assert events[-1].completed_steps == 8
        assert events[-1].total_steps == 8
        assert orchestrator.last_run.state is PipelineState.DONE

    def test_images_follow_scene_order(self, story_request, reference_image):
        provider = FakeProvider(text_responses=[scenes_payload(6)])

        _, result = run_pipeline(provider, story_request, reference_image)

        assert len(result.scenes) == len(result.images) == 6
        assert list(result.images) == [f"image-{i}".encode() for i in range(1, 7)]
        for (prompt, reference), scene in zip(provider.image_calls, result.scenes):
            assert scene.text in prompt
            assert reference is reference_image
        pairs = result.illustrated_scenes
        assert pairs[2].scene.index == 3
        assert pairs[2].image == b"image-3"

    def test_full_text_joins_scenes_with_blank_line(self, story_request, reference_image):
        provider = FakeProvider(text_responses=[scenes_payload(6)])

        _, result = run_pipeline(provider, story_request, reference_image)

        assert result.full_text == "\n\n".join(scene.text for scene in result.scenes)
        assert result.full_text in provider.audio_calls[0][0]

    def test_progress_is_monotonic_with_fixed_total(self, story_request, reference_image):
        provider = FakeProvider(text_responses=[scenes_payload(6)])
        events = []

        run_pipeline(provider, story_request, reference_image, events)

        steps = [event.completed_steps for event in events]
        assert steps == sorted(steps)
        assert steps[0] == 0
        assert {event.total_steps for event in events} == {8}
        assert events[0].stage == "story:preparing"
        assert [e.stage for e in events].count("image:done") == 6

    def test_longer_tier(self, story_request, reference_image):
        from dataclasses import replace

        provider = FakeProvider(text_responses=[scenes_payload(12)])
        events = []

        _, result = run_pipeline(
            provider, replace(story_request, length_tier="extra-long"), reference_image, events
        )

        assert len(result.images) == 12
        assert events[-1].completed_steps == events[-1].total_steps == 14

    def test_missing_audio_still_succeeds(self, story_request, reference_image):
        provider = FakeProvider(
            text_responses=[scenes_payload(6)],
            audio_responses=[ProviderResponse.empty()],
        )
        events = []

        _, result = run_pipeline(provider, story_request, reference_image, events)

        assert result.audio is None
        assert not result.has_audio
        assert events[-1].completed_steps == 8

    def test_fallback_keeps_run_going(self, story_request, reference_image):
        provider = FakeProvider(
            text_responses=[scenes_payload(6)],
            image_responses=[ProviderResponse.empty()],
        )

        _, result = run_pipeline(provider, story_request, reference_image)

        assert len(result.images) == 6
        assert len(provider.image_calls) == 7
        assert provider.image_calls[1][1] is None

    def test_run_from_mapping(self, reference_image):
        provider = FakeProvider(text_responses=[scenes_payload(8)])
        orchestrator = DreamTaleOrchestrator(provider=provider)

        result = asyncio.run(
            orchestrator.run_from_mapping(
                {"name": "Tom", "character": "a dragon", "storyLength": "10"},
                reference_image,
            )
        )

        assert len(result.scenes) == 8


class TestFailedRun:

    def test_wrong_scene_count_stops_before_images(self, story_request, reference_image):
        provider = FakeProvider(text_responses=[scenes_payload(4)])
        events = []
        orchestrator = DreamTaleOrchestrator(provider=provider)

        with pytest.raises(TextGenerationError) as excinfo:
            asyncio.run(orchestrator.run(story_request, reference_image, events.append))

        assert provider.image_calls == []
        assert provider.audio_calls == []
        assert excinfo.value.stage == "text_generating"
        assert orchestrator.last_run.state is PipelineState.FAILED
        assert orchestrator.last_run.failed_stage is PipelineState.TEXT_GENERATING
        assert all(event.completed_steps == 0 for event in events)

    def test_image_failure_stops_remaining_scenes(self, story_request, reference_image):
        provider = FakeProvider(
            text_responses=[scenes_payload(6)],
            image_responses=[
                ProviderResponse.empty(),
                ProviderResponse.empty(),
            ],
        )
        orchestrator = DreamTaleOrchestrator(provider=provider)

        with pytest.raises(ImageGenerationError) as excinfo:
            asyncio.run(orchestrator.run(story_request, reference_image))

        assert excinfo.value.scene_index == 1
        assert excinfo.value.stage == "image_generating"
        assert len(provider.image_calls) == 2
        assert provider.audio_calls == []

    def test_failure_on_later_scene(self, story_request, reference_image):
        provider = FakeProvider(
            text_responses=[scenes_payload(6)],
            image_responses=[
                image_response(),
                image_response(),
                ProviderResponse.empty(),
                ProviderResponse.empty(),
            ],
        )
        events = []
        orchestrator = DreamTaleOrchestrator(provider=provider)

        with pytest.raises(ImageGenerationError) as excinfo:
            asyncio.run(orchestrator.run(story_request, reference_image, events.append))

        assert excinfo.value.scene_index == 3
        assert len(provider.image_calls) == 4
        assert events[-1].completed_steps == 3

    def test_text_instead_of_image_stops_the_run(self, story_request, reference_image):
        provider = FakeProvider(
            text_responses=[scenes_payload(6)],
            image_responses=[image_response(), text_only_response()],
        )
        orchestrator = DreamTaleOrchestrator(provider=provider)

        with pytest.raises(ImagePayloadMissingError) as excinfo:
            asyncio.run(orchestrator.run(story_request, reference_image))

        assert excinfo.value.scene_index == 2
        assert len(provider.image_calls) == 2
        assert provider.audio_calls == []
        assert orchestrator.last_run.state is PipelineState.FAILED

    def test_error_message_is_preserved(self, story_request, reference_image):
        provider = FakeProvider(text_responses=["garbage"])

        with pytest.raises(TextGenerationError, match="not valid JSON"):
            run_pipeline(provider, story_request, reference_image)

    def test_rerun_starts_fresh(self, story_request, reference_image):
        provider = FakeProvider(text_responses=[scenes_payload(2), scenes_payload(6)])
        orchestrator = DreamTaleOrchestrator(provider=provider)

        with pytest.raises(TextGenerationError):
            asyncio.run(orchestrator.run(story_request, reference_image))
        failed_run = orchestrator.last_run

        events = []
        asyncio.run(orchestrator.run(story_request, reference_image, events.append))

        assert orchestrator.last_run is not failed_run
        assert events[0].completed_steps == 0
        assert events[-1].completed_steps == 8


class TestStoryResult:

    def test_mismatched_images_rejected(self):
        with pytest.raises(SceneImageCountMismatchError):
            StoryResult(full_text="a", scenes=(Scene(1, "a"),), images=())

    def test_yaml_manifest_describes_payloads(self):
        result = StoryResult(
            full_text="a\n\nb",
            scenes=(Scene(1, "a"), Scene(2, "b")),
            images=(b"123", b"45"),
            audio=b"pcm",
            audio_mime_type="audio/L16;codec=pcm;rate=24000",
        )

        manifest = yaml.safe_load(result.to_yaml())

        assert manifest["scenes"][0] == {
            "index": 1,
            "text": "a",
            "image_mime_type": "image/png",
            "image_bytes": 3,
        }
        assert manifest["audio"]["bytes"] == 3
        assert manifest["plan"] is None

"""
Story text stage tests.
"""
import asyncio
import json

import pytest

from dreamtale.common import TextGenerationError
from dreamtale.story_generation import Scene, StoryTextGenerator, build_story_prompt, join_scenes, resolve_plan

from conftest import FakeProvider, scenes_payload


def generate(provider, request, tier="short"):
    return asyncio.run(StoryTextGenerator(provider).generate(request, resolve_plan(tier)))


class TestStoryTextGenerator:

    def test_returns_indexed_scenes(self, story_request):
        provider = FakeProvider(text_responses=[scenes_payload(6)])

        scenes = generate(provider, story_request)

        assert [s.index for s in scenes] == [1, 2, 3, 4, 5, 6]
        assert scenes[0] == Scene(index=1, text="Scene number 1 under the stars.")

    def test_declares_required_scenes_schema(self, story_request):
        provider = FakeProvider(text_responses=[scenes_payload(6)])

        generate(provider, story_request)

        prompt, schema = provider.text_calls[0]
        assert schema["required"] == ["scenes"]
        assert schema["properties"]["scenes"]["items"] == {"type": "string"}
        assert "exactly 6 short scenes" in prompt
        assert "approximately 400 words" in prompt
        assert "Liliana" in prompt

    def test_wrong_scene_count_is_terminal(self, story_request):
        provider = FakeProvider(text_responses=[scenes_payload(5)])

        with pytest.raises(TextGenerationError, match="expected 6 scenes"):
            generate(provider, story_request)
        assert len(provider.text_calls) == 1

    @pytest.mark.parametrize(
        "payload",
        [
            "not json at all",
            json.dumps({"story": ["a"]}),
            json.dumps(["a", "b"]),
            json.dumps({"scenes": "one long string"}),
            json.dumps({"scenes": ["ok", 3, "ok", "ok", "ok", "ok"]}),
            json.dumps({"scenes": ["ok", "  ", "ok", "ok", "ok", "ok"]}),
        ],
    )
    def test_malformed_payloads(self, story_request, payload):
        with pytest.raises(TextGenerationError):
            generate(FakeProvider(text_responses=[payload]), story_request)

    def test_scene_text_is_stripped(self, story_request):
        texts = ["  Scene one.\n"] + [f"Scene {n}." for n in range(2, 7)]
        provider = FakeProvider(text_responses=[json.dumps({"scenes": texts})])

        scenes = generate(provider, story_request)

        assert scenes[0].text == "Scene one."

    def test_blank_scene_names_its_position(self, story_request):
        texts = ["ok", "ok", "\n\t", "ok", "ok", "ok"]
        provider = FakeProvider(text_responses=[json.dumps({"scenes": texts})])

        with pytest.raises(TextGenerationError, match="scene 3 is empty"):
            generate(provider, story_request)

    def test_code_fenced_json_is_accepted(self, story_request):
        fenced = "```json\n" + scenes_payload(6) + "\n```"
        scenes = generate(FakeProvider(text_responses=[fenced]), story_request)
        assert len(scenes) == 6

    def test_prompt_uses_story_language(self, story_request):
        from dataclasses import replace

        czech = replace(story_request, story_language="Czech")
        prompt = build_story_prompt(czech, resolve_plan("short"))
        assert "Always write in Czech." in prompt.system


def test_join_scenes_uses_blank_line():
    scenes = (Scene(1, "First."), Scene(2, "Second."))
    assert join_scenes(scenes) == "First.\n\nSecond."

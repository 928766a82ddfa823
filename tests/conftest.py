import json
from dataclasses import dataclass, field
from typing import Any

import pytest

from dreamtale.common import ContentPart, ProviderResponse
from dreamtale.story_generation import ReferenceImage, StoryRequest

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


def image_response(data: bytes = PNG_BYTES) -> ProviderResponse:
    return ProviderResponse.from_parts([ContentPart(data=data, mime_type="image/png")])


def text_only_response(text: str = "I drew it for you!") -> ProviderResponse:
    return ProviderResponse.from_parts([ContentPart(text=text)])


def audio_response(data: bytes = b"pcm-audio") -> ProviderResponse:
    return ProviderResponse.from_parts([ContentPart(data=data, mime_type="audio/L16;codec=pcm;rate=24000")])


def scenes_payload(count: int) -> str:
    return json.dumps({"scenes": [f"Scene number {i} under the stars." for i in range(1, count + 1)]})


@dataclass
class FakeProvider:
    """Provider double returning scripted responses and recording every call."""

    text_responses: list[str] = field(default_factory=list)
    image_responses: list[ProviderResponse] = field(default_factory=list)
    audio_responses: list[ProviderResponse] = field(default_factory=list)
    text_calls: list[tuple[str, Any]] = field(default_factory=list)
    image_calls: list[tuple[str, Any]] = field(default_factory=list)
    audio_calls: list[tuple[str, str]] = field(default_factory=list)

    async def generate_structured_text(self, prompt, schema):
        self.text_calls.append((prompt, schema))
        return self.text_responses.pop(0)

    async def generate_image(self, prompt, reference_image=None):
        self.image_calls.append((prompt, reference_image))
        if self.image_responses:
            return self.image_responses.pop(0)
        return image_response(f"image-{len(self.image_calls)}".encode())

    async def generate_audio(self, prompt, voice_name):
        self.audio_calls.append((prompt, voice_name))
        if self.audio_responses:
            return self.audio_responses.pop(0)
        return audio_response()


@pytest.fixture
def story_request():
    return StoryRequest(
        subject_name="Liliana",
        character="a brave knight",
        setting="an enchanted forest",
        special_object="a favourite teddy bear",
        length_tier="short",
    )


@pytest.fixture
def reference_image():
    return ReferenceImage(data=b"\xff\xd8\xffjpeg-bytes", mime_type="image/jpeg")


@pytest.fixture
def fake_provider():
    return FakeProvider()

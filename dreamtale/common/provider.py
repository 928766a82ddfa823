"""
Capability interface the pipeline uses to talk to a generative model provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class ContentPart:
    """One part of a provider response: text, inline binary data, or both."""

    text: str | None = None
    data: bytes | None = None
    mime_type: str | None = None

    @property
    def is_inline(self) -> bool:
        return bool(self.data)


@dataclass(frozen=True)
class ProviderResponse:
    """
    Provider-neutral view of a multimodal response.

    An empty ``parts`` tuple means the provider returned no content at all,
    which is how content-policy rejections surface.
    """

    parts: tuple[ContentPart, ...] = ()

    @classmethod
    def empty(cls) -> "ProviderResponse":
        return cls()

    @classmethod
    def from_parts(cls, parts: Sequence[ContentPart] | None) -> "ProviderResponse":
        return cls(parts=tuple(parts or ()))

    @property
    def has_content(self) -> bool:
        return bool(self.parts)

    def first_inline(self, mime_prefix: str | None = None) -> ContentPart | None:
        """
        Return the first part carrying binary data, optionally filtered by media type prefix.
        """
        for part in self.parts:
            if not part.is_inline:
                continue
            if mime_prefix and part.mime_type and not part.mime_type.startswith(mime_prefix):
                continue
            return part
        return None


@runtime_checkable
class ProviderClient(Protocol):
    """Narrow view of the model provider used by the pipeline stages."""

    async def generate_structured_text(self, prompt: str, schema: Mapping[str, Any]) -> str:
        """Return the raw JSON text produced for ``prompt`` under ``schema``."""
        ...

    async def generate_image(
        self,
        prompt: str,
        reference_image: Any | None = None,
    ) -> ProviderResponse:
        """Render an image, optionally conditioned on a reference image."""
        ...

    async def generate_audio(self, prompt: str, voice_name: str) -> ProviderResponse:
        """Narrate ``prompt`` with the named voice."""
        ...


class ImageBackend(Protocol):
    """Anything that can stand in for the provider's image capability."""

    async def generate_image(
        self,
        prompt: str,
        reference_image: Any | None = None,
    ) -> ProviderResponse:
        ...

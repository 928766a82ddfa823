"""
Integration with Replicate as an alternative storybook image backend.
"""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Iterable as IterableABC
from typing import Any, BinaryIO, Callable

import replicate
from replicate.exceptions import ModelError

from dreamtale.common import ContentPart, ProviderResponse

logger = logging.getLogger(__name__)


def _build_instant_id_input(*, prompt: str, image_input: BinaryIO | None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "prompt": prompt,
        "negative_prompt": "text, letters, watermark, logo, frightening, dark",
        "output_format": "png",
        "sdxl_weights": "protovision-xl-high-fidel",
        "guidance_scale": 5,
    }
    if image_input is not None:
        payload["image"] = image_input
    return payload


def _build_flux_kontext_input(*, prompt: str, image_input: BinaryIO | None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "prompt": prompt,
        "output_format": "png",
        "safety_tolerance": 2,
        "prompt_upsampling": True,
        "aspect_ratio": "1:1",
    }
    if image_input is not None:
        payload["input_image"] = image_input
    return payload


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "zsxkib/instant-id": _build_instant_id_input,
    "black-forest-labs/flux-kontext-pro": _build_flux_kontext_input,
}

# InstantID conditions on a face photo and cannot render from text alone.
_MODELS_REQUIRING_REFERENCE = frozenset({"zsxkib/instant-id"})


def _base_identifier(model_identifier: str) -> str:
    return model_identifier.strip().lower().split(":", maxsplit=1)[0]


def _build_replicate_input_payload(
    *,
    model_identifier: str,
    prompt: str,
    image_input: BinaryIO | None,
) -> dict[str, Any]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(_MODEL_INPUT_BUILDERS))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )

    return builder(prompt=prompt, image_input=image_input)


class ReplicateImageGenerator:
    """
    Image backend that renders scene illustrations on Replicate.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model`` or ``owner/model:version`` format. Falls back to
        ``REPLICATE_MODEL`` and then to ``black-forest-labs/flux-kontext-pro``.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        client: replicate.Client | None = None,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier
            or os.getenv("REPLICATE_MODEL")
            or "black-forest-labs/flux-kontext-pro"
        )
        self._client = client or replicate.Client(api_token=self._api_token)

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    @property
    def requires_reference(self) -> bool:
        return _base_identifier(self._model_identifier) in _MODELS_REQUIRING_REFERENCE

    async def generate_image(
        self,
        prompt: str,
        reference_image: Any | None = None,
    ) -> ProviderResponse:
        """
        Run the configured model. A model-side rejection yields an empty response, as does
        an unconditioned request to a model that only works from a reference photo.
        """
        if reference_image is None and self.requires_reference:
            logger.warning(
                "%s needs a reference photo; no unconditioned illustration possible.",
                self._model_identifier,
            )
            return ProviderResponse.empty()

        image_input = io.BytesIO(reference_image.data) if reference_image is not None else None
        replicate_input = _build_replicate_input_payload(
            model_identifier=self._model_identifier,
            prompt=prompt,
            image_input=image_input,
        )

        try:
            output = await self._client.async_run(self._model_identifier, input=replicate_input)
        except ModelError as exc:
            logger.warning("Replicate rejected the illustration request: %s", exc)
            return ProviderResponse.empty()

        return ProviderResponse.from_parts(await _read_outputs(output))


async def _read_outputs(raw: Any) -> list[ContentPart]:
    """
    Turn Replicate outputs into content parts, reading file outputs into PNG bytes.
    """
    if raw is None:
        return []

    if isinstance(raw, (bytes, bytearray)):
        return [ContentPart(data=bytes(raw), mime_type="image/png")]

    if isinstance(raw, str):
        # a bare URL is content, but not an inline payload
        return [ContentPart(text=raw)]

    if hasattr(raw, "aread"):
        return [ContentPart(data=await raw.aread(), mime_type="image/png")]

    if hasattr(raw, "read"):
        return [ContentPart(data=raw.read(), mime_type="image/png")]

    if isinstance(raw, IterableABC):
        parts: list[ContentPart] = []
        for item in raw:
            parts.extend(await _read_outputs(item))
        return parts

    return [ContentPart(text=str(raw))]

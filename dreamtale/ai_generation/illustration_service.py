"""
Per-scene illustration with a photo-conditioned attempt and an unconditioned fallback.
"""

from __future__ import annotations

import logging

from dreamtale.common import (
    ImageGenerationError,
    ImagePayloadMissingError,
    ProviderClient,
    ProviderResponse,
)
from dreamtale.story_generation import ReferenceImage, Scene

from .prompting import build_fallback_illustration_prompt, build_illustration_prompt

logger = logging.getLogger(__name__)


class SceneIllustrator:
    """
    Produces exactly one image per scene or raises.

    The first request sends the reference photo. A response without any content
    is treated as a rejection and retried once without the photo, naming the
    character in the prompt instead. Exceptions raised by the provider itself
    are not retried.
    """

    def __init__(self, provider: ProviderClient) -> None:
        self._provider = provider

    async def illustrate(
        self,
        scene: Scene,
        reference_image: ReferenceImage,
        character: str,
    ) -> bytes:
        prompt = build_illustration_prompt(scene.text)
        response: ProviderResponse = await self._provider.generate_image(
            prompt.text,
            reference_image=reference_image,
        )

        if not response.has_content:
            logger.warning(
                "Illustration with the reference photo was rejected for scene %d; "
                "retrying without the photo.",
                scene.index,
            )
            fallback = build_fallback_illustration_prompt(scene.text, character)
            response = await self._provider.generate_image(fallback.text, reference_image=None)

        if not response.has_content:
            logger.error("Illustration failed without the photo as well for scene %d.", scene.index)
            raise ImageGenerationError(
                f"Unfortunately the illustration for scene {scene.index} could not be created. "
                "Try describing the character or setting a little differently and create the story again.",
                scene_index=scene.index,
            )

        part = response.first_inline()
        if part is None or part.data is None:
            raise ImagePayloadMissingError(
                f"No image data was found in the response for scene {scene.index}.",
                scene_index=scene.index,
            )

        logger.debug("Scene %d illustrated (%d bytes).", scene.index, len(part.data))
        return part.data

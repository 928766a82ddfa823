"""
Common utilities shared across DreamTale modules.
"""

from .errors import (
    ImageGenerationError,
    ImagePayloadMissingError,
    SceneImageCountMismatchError,
    StoryGenerationError,
    TextGenerationError,
)
from .llm import ChatResult, CompletionCallable, call_chat_completion, json_schema_response_format
from .provider import ContentPart, ImageBackend, ProviderClient, ProviderResponse

__all__ = [
    "ChatResult",
    "CompletionCallable",
    "call_chat_completion",
    "json_schema_response_format",
    "ContentPart",
    "ImageBackend",
    "ProviderClient",
    "ProviderResponse",
    "StoryGenerationError",
    "TextGenerationError",
    "ImageGenerationError",
    "ImagePayloadMissingError",
    "SceneImageCountMismatchError",
]

"""
Structured representations of the story request gathered from the form.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping


class StoryLength(str, Enum):
    """Coarse story-length tiers offered to the reader."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    EXTRA_LONG = "extra-long"


def _coerce_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and str(value).strip():
            return value
    return None


@dataclass(frozen=True)
class StoryRequest:
    """
    Canonical representation of the personalized story inputs.

    Attributes
    ----------
    subject_name:
        Name of the child the story is written for (required).
    character:
        The hero of the story, e.g. "a brave knight".
    setting:
        Where the story takes place.
    special_object:
        A favourite toy or object that should appear in the plot.
    length_tier:
        One of the :class:`StoryLength` values. Unknown values are kept as-is and
        resolved to the shortest plan later on.
    story_language:
        Language the story and narration are written in (defaults to English).
    """

    subject_name: str
    character: str = ""
    setting: str = ""
    special_object: str = ""
    length_tier: str = StoryLength.SHORT.value
    story_language: str = "English"

    def __post_init__(self) -> None:
        if not self.subject_name or not self.subject_name.strip():
            raise ValueError("Story request must include a non-empty subject name.")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoryRequest":
        """
        Build a request from a dict-like object (e.g., parsed JSON/YAML or form data).
        """
        name = _first_present(data, "subject_name", "name", "child_name")
        if name is None:
            raise ValueError("Story request data must include a non-empty 'name' field.")

        length = _first_present(data, "length_tier", "story_length", "storyLength", "length")
        if isinstance(length, StoryLength):
            length = length.value

        return cls(
            subject_name=_coerce_str(name),
            character=_coerce_str(data.get("character")),
            setting=_coerce_str(data.get("setting")),
            special_object=_coerce_str(
                _first_present(data, "special_object", "object", "toy")
            ),
            length_tier=_coerce_str(length) or StoryLength.SHORT.value,
            story_language=_coerce_str(_first_present(data, "story_language", "language"))
            or "English",
        )

    def context_bullets(self) -> list[str]:
        """
        Produce bullet-friendly lines describing the request, for prompt conditioning.
        """
        bullets: list[str] = [f"Child's name: {self.subject_name}"]

        if self.character:
            bullets.append(f"Main character: {self.character}")

        if self.setting:
            bullets.append(f"Setting: {self.setting}")

        if self.special_object:
            bullets.append(f"Special object: {self.special_object}")

        bullets.append(f"Story language: {self.story_language}")
        return bullets

    def summary_for_prompt(self) -> str:
        return "\n".join(f"- {line}" for line in self.context_bullets())


@dataclass(frozen=True)
class ReferenceImage:
    """Reference photo supplied once and shared by every illustration request."""

    data: bytes
    mime_type: str

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("Reference image payload must not be empty.")
        if not self.mime_type or not self.mime_type.lower().startswith("image/"):
            raise ValueError(
                f"Reference image must declare an image media type, got {self.mime_type!r}."
            )

    @classmethod
    def from_path(cls, path: str | Path, *, mime_type: str | None = None) -> "ReferenceImage":
        """
        Read a reference photo from disk, guessing its media type from the suffix.
        """
        image_path = Path(path).expanduser()
        if not image_path.exists():
            raise FileNotFoundError(f"Reference image not found at '{image_path}'.")

        resolved_type = mime_type or mimetypes.guess_type(image_path.name)[0]
        if resolved_type is None:
            raise ValueError(f"Could not determine the media type of '{image_path}'.")

        return cls(data=image_path.read_bytes(), mime_type=resolved_type)

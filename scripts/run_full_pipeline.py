"""
CLI to run the complete DreamTale pipeline end-to-end.

Usage:
    python scripts/run_full_pipeline.py \
        --request story_request.yaml \
        --reference-image example_images/child.jpg \
        --output dreamtale_story/
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
import time
import wave
from pathlib import Path
from typing import Any, Dict

import yaml

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dreamtale import DreamTaleOrchestrator, ProgressEvent, ReferenceImage, StoryResult, resolve_plan
from dreamtale.ai_generation import GeminiProviderClient, ReplicateImageGenerator
from dreamtale.common import StoryGenerationError
from dreamtale.story_generation import GenerationPlan, StoryRequest

# Gemini TTS returns raw 16-bit mono PCM at 24 kHz.
PCM_SAMPLE_RATE = 24000
PCM_SAMPLE_WIDTH = 2


def estimate_seconds(plan: GenerationPlan) -> int:
    """Rough display estimate: 5 s for the text, 8 s per image, 5 s for the narration."""
    return 5 + plan.scene_count * 8 + 5


class ProgressTracker:
    """
    Provides command-line progress updates for the DreamTale pipeline.
    """

    def __init__(self, plan: GenerationPlan) -> None:
        self._bar: tqdm | None = None
        self._deadline = time.monotonic() + estimate_seconds(plan)

    def __call__(self, event: ProgressEvent) -> None:
        if self._bar is None:
            self._bar = tqdm(total=event.total_steps, desc="Story", unit="step")

        self._bar.n = event.completed_steps
        remaining = max(0, int(self._deadline - time.monotonic()))
        self._bar.set_postfix_str(f"~{_format_time(remaining)} left", refresh=False)
        self._bar.set_description(event.message)
        self._bar.refresh()

        if event.completed_steps == event.total_steps:
            self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


def _format_time(seconds: int) -> str:
    if seconds <= 0:
        return "a moment"
    minutes, rest = divmod(seconds, 60)
    return f"{minutes}:{rest:02d}" if minutes else f"{rest}s"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the full DreamTale generation pipeline.")
    parser.add_argument(
        "--request",
        required=True,
        help="Path to the story request YAML/JSON file.",
    )
    parser.add_argument(
        "--reference-image",
        required=True,
        help="Path to the child's reference photo.",
    )
    parser.add_argument(
        "--output",
        default="dreamtale_story",
        help="Directory to store the story text, illustrations, narration and manifest.",
    )
    parser.add_argument(
        "--length",
        default=None,
        help="Override the story length tier (short, medium, long, extra-long).",
    )
    parser.add_argument(
        "--language",
        default=None,
        help="Override the story language.",
    )
    parser.add_argument(
        "--voice",
        default=None,
        help="Override the narration voice.",
    )
    parser.add_argument(
        "--image-backend",
        choices=("gemini", "replicate"),
        default="gemini",
        help="Which service renders the illustrations.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args()


def load_request_mapping(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported request file format. Use YAML or JSON.")

    if not isinstance(data, dict):
        raise ValueError("Request file must deserialize to a mapping.")
    return data


def audio_extension(mime_type: str | None) -> str:
    """File suffix for a narration media type, ignoring parameters such as ``rate=``."""
    base_type = (mime_type or "").split(";", maxsplit=1)[0].strip().lower()
    if not base_type:
        return ".bin"
    return mimetypes.guess_extension(base_type) or ".bin"


def save_story(result: StoryResult, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "story.txt").write_text(result.full_text, encoding="utf-8")

    for item in result.illustrated_scenes:
        (output_dir / f"scene_{item.scene.index:02d}.png").write_bytes(item.image)

    if result.audio:
        mime_type = (result.audio_mime_type or "").lower()
        if not mime_type or "l16" in mime_type or "pcm" in mime_type:
            with wave.open(str(output_dir / "narration.wav"), "wb") as handle:
                handle.setnchannels(1)
                handle.setsampwidth(PCM_SAMPLE_WIDTH)
                handle.setframerate(PCM_SAMPLE_RATE)
                handle.writeframes(result.audio)
        else:
            (output_dir / f"narration{audio_extension(mime_type)}").write_bytes(result.audio)

    (output_dir / "story.yaml").write_text(result.to_yaml(), encoding="utf-8")


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        mapping = load_request_mapping(Path(args.request))
        if args.length:
            mapping["length_tier"] = args.length
        if args.language:
            mapping["story_language"] = args.language
        request = StoryRequest.from_mapping(mapping)
        reference_image = ReferenceImage.from_path(args.reference_image)

        image_backend = ReplicateImageGenerator() if args.image_backend == "replicate" else None
        orchestrator = DreamTaleOrchestrator(
            provider=GeminiProviderClient(image_backend=image_backend),
            voice_name=args.voice,
        )
    except (ValueError, FileNotFoundError, yaml.YAMLError) as exc:
        print(f"Cannot start story generation: {exc}", file=sys.stderr)
        return 1

    tracker = ProgressTracker(resolve_plan(request.length_tier))

    try:
        result = asyncio.run(orchestrator.run(request, reference_image, tracker))
    except StoryGenerationError as exc:
        tqdm.write(f"Story generation failed: {exc}")
        return 1
    finally:
        tracker.close()

    output_dir = Path(args.output)
    save_story(result, output_dir)
    print(f"Saved story for {request.subject_name} to {output_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

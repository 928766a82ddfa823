"""
Mapping from a coarse story-length tier to a concrete generation plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .request import StoryLength

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationPlan:
    """Number of scenes and approximate word count for one story."""

    scene_count: int
    target_word_count: int

    @property
    def total_steps(self) -> int:
        # one step for the text, one per illustration, one for the narration
        return self.scene_count + 2


PLAN_TABLE: dict[StoryLength, GenerationPlan] = {
    StoryLength.SHORT: GenerationPlan(scene_count=6, target_word_count=400),
    StoryLength.MEDIUM: GenerationPlan(scene_count=8, target_word_count=800),
    StoryLength.LONG: GenerationPlan(scene_count=10, target_word_count=1200),
    StoryLength.EXTRA_LONG: GenerationPlan(scene_count=12, target_word_count=1600),
}

# The story form offers reading times in minutes instead of tier names.
_TIER_ALIASES: dict[str, StoryLength] = {
    "5": StoryLength.SHORT,
    "10": StoryLength.MEDIUM,
    "15": StoryLength.LONG,
    "20": StoryLength.EXTRA_LONG,
    "extra_long": StoryLength.EXTRA_LONG,
    "extralong": StoryLength.EXTRA_LONG,
}

DEFAULT_PLAN = PLAN_TABLE[StoryLength.SHORT]


def resolve_plan(length_tier: StoryLength | str | None) -> GenerationPlan:
    """
    Return the plan for ``length_tier``, falling back to the short plan for unknown tiers.
    """
    if isinstance(length_tier, StoryLength):
        return PLAN_TABLE[length_tier]

    key = str(length_tier or "").strip().lower()
    try:
        tier = StoryLength(key)
    except ValueError:
        tier = _TIER_ALIASES.get(key)

    if tier is None:
        logger.debug("Unknown story length %r; plan defaulted to %s.", length_tier, DEFAULT_PLAN)
        return DEFAULT_PLAN

    return PLAN_TABLE[tier]

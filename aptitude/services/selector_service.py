"""
Aptitude Compass: Adaptive Likert item selection.

The selector is a pure function of the catalog and the answers so far.
Each unanswered candidate is scored with a heuristic information gain:

  * an axis nobody has answered yet scores 1.0, so unexplored axes come
    first;
  * otherwise ``gain = |4 - axis_average| * (1 + sum(related weights))``.

The highest gain wins and ties keep catalog order.  Required items are
offered first; once they are exhausted a single unrestricted pass runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from aptitude.schemas.question import LikertQuestion

SCALE_MIDPOINT: float = 4.0
UNEXPLORED_AXIS_GAIN: float = 1.0


@dataclass(frozen=True)
class AxisStats:
    """Running total of normalised Likert values on one axis."""

    sum: float = 0.0
    count: int = 0

    @property
    def average(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.sum / self.count

    def add(self, value: float) -> "AxisStats":
        return AxisStats(sum=self.sum + value, count=self.count + 1)


@dataclass(frozen=True)
class LikertProgress:
    required_total: int
    required_answered: int
    total: int
    answered: int

    @property
    def needs_required(self) -> bool:
        return self.required_answered < self.required_total


def recompute_axis_stats(
    items: Sequence[LikertQuestion],
    answered_values: Mapping[str, int],
) -> dict[str, AxisStats]:
    """Rebuild per-axis stats from scratch.

    Every axis in the catalog is present, starting from zero; answered
    values are added after polarity normalisation.
    """
    stats: dict[str, AxisStats] = {}
    for item in items:
        stats.setdefault(item.axis, AxisStats())
    for item in items:
        value = answered_values.get(item.id)
        if value is None:
            continue
        stats[item.axis] = stats[item.axis].add(item.normalize(value))
    return stats


def axis_average(stats: Mapping[str, AxisStats]) -> dict[str, float]:
    """Per-axis mean rounded to 2 decimals, 0 for unobserved axes."""
    return {
        axis: round(s.average, 2) if s.average is not None else 0.0
        for axis, s in stats.items()
    }


def information_gain(item: LikertQuestion, axis_stats: Mapping[str, AxisStats]) -> float:
    stats = axis_stats.get(item.axis)
    average = stats.average if stats is not None else None
    if average is None:
        return UNEXPLORED_AXIS_GAIN
    gap = abs(SCALE_MIDPOINT - average)
    return gap * (1.0 + item.related_weight)


def _best_candidate(
    items: Sequence[LikertQuestion],
    answered_values: Mapping[str, int],
    axis_stats: Mapping[str, AxisStats],
    required_only: bool,
) -> Optional[LikertQuestion]:
    best: Optional[LikertQuestion] = None
    best_gain = float("-inf")
    for item in items:
        if item.id in answered_values:
            continue
        if required_only and not item.required:
            continue
        gain = information_gain(item, axis_stats)
        # strict comparison keeps the earliest item on ties
        if gain > best_gain:
            best, best_gain = item, gain
    return best


def pick_next(
    items: Sequence[LikertQuestion],
    answered_values: Mapping[str, int],
    axis_stats: Mapping[str, AxisStats],
    required_only: bool = True,
) -> Optional[LikertQuestion]:
    """Return the next Likert item to present, or ``None`` when done.

    Parameters
    ----------
    items:
        The Likert catalog in display order.
    answered_values:
        Raw 1-7 answers keyed by question id.
    axis_stats:
        Output of ``recompute_axis_stats`` for the same answers.
    required_only:
        Restrict the first pass to required items.  When that pass finds
        nothing, one unrestricted pass follows.
    """
    passes = (True, False) if required_only else (False,)
    for restrict in passes:
        candidate = _best_candidate(items, answered_values, axis_stats, restrict)
        if candidate is not None:
            return candidate
    return None


def likert_progress(
    items: Sequence[LikertQuestion],
    answered_values: Mapping[str, int],
) -> LikertProgress:
    required = [item for item in items if item.required]
    return LikertProgress(
        required_total=len(required),
        required_answered=sum(1 for item in required if item.id in answered_values),
        total=len(items),
        answered=sum(1 for item in items if item.id in answered_values),
    )


def is_likert_complete(
    items: Sequence[LikertQuestion],
    answered_values: Mapping[str, int],
) -> bool:
    """All required items answered and nothing left on an unrestricted pass."""
    if likert_progress(items, answered_values).needs_required:
        return False
    stats = recompute_axis_stats(items, answered_values)
    return pick_next(items, answered_values, stats, required_only=False) is None

"""
Aptitude Compass: Weight write-back.

Reconciles the option summaries of an ``AnalysisReport`` against the
persisted forced-choice and scenario catalogs.  Only the ``primary.weight``
leaf of a matching option changes, and only when it moved by at least the
tolerance; every other field of the catalog survives untouched, including
fields this package does not model.

``plan_updates`` is pure: it returns a patched deep copy plus the list of
patches.  ``WeightApplier`` owns the file I/O (lock, read, atomic write).
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Iterable, Optional

import structlog

from aptitude.schemas.calibration import (
    AnalysisReport,
    ItemSummary,
    WeightApplyResult,
    WeightPatch,
    split_option_item_id,
)
from aptitude.utils.storage import exclusive_lock, read_json, write_json_atomic

logger = structlog.get_logger("aptitude.weight_service")

DEFAULT_TOLERANCE: float = 0.05
MISSING_WEIGHT: float = 1.0


def _find_by(nodes: list, field: str, value: str) -> Optional[dict]:
    for node in nodes:
        if isinstance(node, dict) and node.get(field) == value:
            return node
    return None


def _current_weight(primary: dict) -> float:
    weight = primary.get("weight")
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return MISSING_WEIGHT
    return float(weight)


def plan_updates(
    document: Any,
    summaries: Iterable[ItemSummary],
    tolerance: float = DEFAULT_TOLERANCE,
) -> tuple[dict, list[WeightPatch]]:
    """Compute the patched catalog without touching *document*.

    Raises
    ------
    ValueError
        If *document* is not an object with an ``items`` list.
    """
    if not isinstance(document, dict) or not isinstance(document.get("items"), list):
        raise ValueError("catalog root must be an object with an 'items' list")

    new_document = copy.deepcopy(document)
    items = new_document["items"]
    patches: list[WeightPatch] = []

    for summary in summaries:
        parts = split_option_item_id(summary.item_id)
        if parts is None:
            continue
        question_id, option_key = parts

        question = _find_by(items, "id", question_id)
        if question is None or not isinstance(question.get("options"), list):
            continue
        option = _find_by(question["options"], "key", option_key)
        if option is None or not isinstance(option.get("primary"), dict):
            continue

        primary = option["primary"]
        current = _current_weight(primary)
        recommended = summary.recommended_weight
        if abs(current - recommended) < tolerance:
            continue

        primary["weight"] = recommended
        patches.append(
            WeightPatch(
                question_id=question_id,
                option_key=option_key,
                previous_weight=current,
                new_weight=recommended,
            )
        )

    return new_document, patches


class WeightApplier:
    """Writes recommended option weights back into the catalog files."""

    def __init__(self, tolerance: float = DEFAULT_TOLERANCE) -> None:
        if tolerance < 0:
            raise ValueError(f"Tolerance must be non-negative, got {tolerance}")
        self.tolerance = tolerance

    def apply_to_file(
        self,
        path: str | Path,
        summaries: Iterable[ItemSummary],
    ) -> Optional[list[WeightPatch]]:
        """Patch one catalog file in place.

        Returns the applied patches, or ``None`` when the file was skipped
        because it is missing or not a catalog.

        Raises
        ------
        CatalogLockedError
            If another writer holds the catalog's lock file.
        """
        path = Path(path)
        log = logger.bind(path=str(path))
        if not path.is_file():
            log.warning("weight_target_missing")
            return None

        with exclusive_lock(path):
            try:
                document = read_json(path)
                new_document, patches = plan_updates(document, summaries, self.tolerance)
            except (OSError, json.JSONDecodeError, ValueError) as exc:
                log.warning("weight_target_invalid", error=str(exc))
                return None

            if patches:
                write_json_atomic(path, new_document)
        log.info("weights_applied", updated=len(patches))
        return patches

    def apply(
        self,
        report: AnalysisReport,
        forced_choice_path: str | Path,
        scenario_path: str | Path,
    ) -> WeightApplyResult:
        """Apply forced-choice and scenario recommendations to their catalogs."""
        skipped: list[str] = []
        all_patches: list[WeightPatch] = []
        counts: list[int] = []

        for path, summaries in (
            (forced_choice_path, report.forced_choice.items),
            (scenario_path, report.scenario.items),
        ):
            patches = self.apply_to_file(path, summaries)
            if patches is None:
                skipped.append(str(path))
                counts.append(0)
                continue
            all_patches.extend(patches)
            counts.append(len(patches))

        result = WeightApplyResult(
            forced_choice_updated=counts[0],
            scenario_updated=counts[1],
            skipped_files=tuple(skipped),
            patches=tuple(all_patches),
        )
        logger.info(
            "weight_apply_complete",
            forced_choice_updated=result.forced_choice_updated,
            scenario_updated=result.scenario_updated,
            skipped=len(skipped),
            tolerance=self.tolerance,
        )
        return result

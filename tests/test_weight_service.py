"""Unit tests for weight write-back into the question catalogs."""
import json
import os

import pytest

from aptitude.schemas.calibration import (
    AnalysisReport,
    ItemSummary,
    OptionAnalysis,
)
from aptitude.services.weight_service import WeightApplier, plan_updates
from aptitude.utils.storage import CatalogLockedError, exclusive_lock, lock_path_for


def _summary(item_id, recommended):
    return ItemSummary(
        item_id=item_id,
        axis="activity",
        category="hands_on",
        mean=0.0,
        variance=0.0,
        recommended_weight=recommended,
        effective_weight=recommended,
    )


def _catalog(weight=1.0, extra=None):
    primary = {"axis": "activity", "category": "hands_on", "score": 5}
    if weight is not None:
        primary["weight"] = weight
    option = {"key": "A", "label": "Build", "primary": primary, "custom": {"keep": True}}
    document = {"version": 3, "items": [{"id": "FC-01", "options": [option]}]}
    if extra:
        document.update(extra)
    return document


def _write(path, document):
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestPlanUpdates:
    """Tests for the pure patch planner."""

    def test_below_tolerance_not_applied(self):
        """1.0 -> 1.03 with tolerance 0.05 is left alone."""
        new_doc, patches = plan_updates(_catalog(1.0), [_summary("FC-01|A", 1.03)], 0.05)
        assert patches == []
        assert new_doc["items"][0]["options"][0]["primary"]["weight"] == 1.0

    def test_at_or_above_tolerance_applied(self):
        """1.0 -> 1.10 with tolerance 0.05 is applied once."""
        new_doc, patches = plan_updates(_catalog(1.0), [_summary("FC-01|A", 1.10)], 0.05)
        assert len(patches) == 1
        assert patches[0].previous_weight == 1.0
        assert new_doc["items"][0]["options"][0]["primary"]["weight"] == 1.10

    def test_input_document_untouched(self):
        """The caller's document is never mutated."""
        document = _catalog(1.0)
        plan_updates(document, [_summary("FC-01|A", 0.6)], 0.05)
        assert document["items"][0]["options"][0]["primary"]["weight"] == 1.0

    def test_missing_weight_reads_as_one(self):
        """An absent primary.weight counts as 1.0."""
        _, patches = plan_updates(_catalog(None), [_summary("FC-01|A", 1.02)], 0.05)
        assert patches == []
        new_doc, patches = plan_updates(_catalog(None), [_summary("FC-01|A", 0.6)], 0.05)
        assert patches[0].previous_weight == 1.0
        assert new_doc["items"][0]["options"][0]["primary"]["weight"] == 0.6

    def test_unknown_fields_preserved(self):
        """Only primary.weight changes."""
        new_doc, _ = plan_updates(_catalog(1.0), [_summary("FC-01|A", 1.4)], 0.05)
        option = new_doc["items"][0]["options"][0]
        assert new_doc["version"] == 3
        assert option["custom"] == {"keep": True}
        assert option["label"] == "Build"
        assert option["primary"]["score"] == 5

    def test_non_option_and_unmatched_summaries_ignored(self):
        """Likert ids and ids absent from the catalog change nothing."""
        _, patches = plan_updates(
            _catalog(1.0),
            [_summary("L1", 1.6), _summary("FC-09|A", 0.6), _summary("FC-01|Z", 0.6)],
            0.05,
        )
        assert patches == []

    def test_tolerance_gating_property(self):
        """No weight whose delta is below tolerance ever changes."""
        for recommended in [0.5, 0.9, 0.96, 1.0, 1.04, 1.2]:
            _, patches = plan_updates(_catalog(1.0), [_summary("FC-01|A", recommended)], 0.1)
            assert bool(patches) == (abs(1.0 - recommended) >= 0.1)

    def test_bad_root_rejected(self):
        """A root without an items list is a ValueError."""
        with pytest.raises(ValueError):
            plan_updates({"questions": []}, [], 0.05)


class TestWeightApplier:
    """Tests for file-level application."""

    def test_apply_counts_and_writes(self, tmp_path):
        """Forced-choice and scenario catalogs are patched independently."""
        fc_path = _write(tmp_path / "fc.json", _catalog(1.0))
        sc_doc = {"items": [{"id": "SC-01", "options": [
            {"key": "B", "primary": {"axis": "interest", "category": "design", "score": 4, "weight": 1.0}}
        ]}]}
        sc_path = _write(tmp_path / "sc.json", sc_doc)
        report = AnalysisReport(
            forced_choice=OptionAnalysis(items=(_summary("FC-01|A", 1.10),)),
            scenario=OptionAnalysis(items=(_summary("SC-01|B", 1.03),)),
        )

        result = WeightApplier(tolerance=0.05).apply(report, fc_path, sc_path)

        assert result.forced_choice_updated == 1
        assert result.scenario_updated == 0
        assert result.skipped_files == ()
        saved = json.loads(fc_path.read_text(encoding="utf-8"))
        assert saved["items"][0]["options"][0]["primary"]["weight"] == 1.10
        assert saved["items"][0]["options"][0]["custom"] == {"keep": True}
        assert not lock_path_for(fc_path).exists()
        assert not (tmp_path / "fc.json.tmp").exists()

    def test_no_write_without_patches(self, tmp_path):
        """An unchanged catalog keeps its original bytes."""
        fc_path = tmp_path / "fc.json"
        fc_path.write_text('{"items": []}', encoding="utf-8")
        report = AnalysisReport(forced_choice=OptionAnalysis(items=(_summary("FC-01|A", 1.4),)))
        WeightApplier().apply(report, fc_path, tmp_path / "missing.json")
        assert fc_path.read_text(encoding="utf-8") == '{"items": []}'

    def test_missing_and_invalid_files_skipped(self, tmp_path):
        """Bad catalogs are skipped while the other is still processed."""
        fc_path = tmp_path / "fc.json"
        fc_path.write_text("{broken", encoding="utf-8")
        sc_path = _write(tmp_path / "sc.json", {"items": [{"id": "SC-01", "options": [
            {"key": "A", "primary": {"axis": "a", "category": "c", "score": 1, "weight": 1.0}}
        ]}]})
        report = AnalysisReport(
            forced_choice=OptionAnalysis(items=(_summary("FC-01|A", 0.6),)),
            scenario=OptionAnalysis(items=(_summary("SC-01|A", 0.6),)),
        )

        result = WeightApplier().apply(report, fc_path, sc_path)

        assert result.forced_choice_updated == 0
        assert result.scenario_updated == 1
        assert result.skipped_files == (str(fc_path),)
        assert fc_path.read_text(encoding="utf-8") == "{broken"

    def test_locked_catalog_raises(self, tmp_path):
        """A held lock file stops the write."""
        fc_path = _write(tmp_path / "fc.json", _catalog(1.0))
        report = AnalysisReport(forced_choice=OptionAnalysis(items=(_summary("FC-01|A", 0.6),)))
        with exclusive_lock(fc_path):
            with pytest.raises(CatalogLockedError):
                WeightApplier().apply(report, fc_path, tmp_path / "sc.json")
        saved = json.loads(fc_path.read_text(encoding="utf-8"))
        assert saved["items"][0]["options"][0]["primary"]["weight"] == 1.0

    def test_lock_error_names_lock_file_and_owner(self, tmp_path):
        """The error carries the lock path and the pid recorded in it."""
        fc_path = _write(tmp_path / "fc.json", _catalog(1.0))
        with exclusive_lock(fc_path) as lock:
            with pytest.raises(CatalogLockedError) as excinfo:
                with exclusive_lock(fc_path):
                    pass
        err = excinfo.value
        assert err.lock == lock_path_for(fc_path)
        assert err.owner_pid == os.getpid()
        assert str(lock) in str(err)
        assert f"pid {os.getpid()}" in str(err)

    def test_stale_lock_without_pid_reported(self, tmp_path):
        """A lock file with no readable pid still names the file."""
        fc_path = _write(tmp_path / "fc.json", _catalog(1.0))
        lock_path_for(fc_path).write_text("", encoding="ascii")
        with pytest.raises(CatalogLockedError) as excinfo:
            with exclusive_lock(fc_path):
                pass
        assert excinfo.value.owner_pid is None
        assert str(lock_path_for(fc_path)) in str(excinfo.value)
        assert lock_path_for(fc_path).exists()

    def test_negative_tolerance_rejected(self):
        """Tolerance must be non-negative."""
        with pytest.raises(ValueError):
            WeightApplier(tolerance=-0.1)

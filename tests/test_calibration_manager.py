"""End-to-end tests for the calibration CLI."""
import json

from scripts.calibration_manager import main


def _write_log(path, rows):
    lines = ["respondentId,itemId,value,responseTimeMs,confidence"]
    lines += [",".join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class TestArguments:
    """Tests for argument handling."""

    def test_missing_required_arguments(self, capsys):
        """Omitting --responses / --output exits 1."""
        assert main([]) == 1

    def test_invalid_tolerance(self, tmp_path):
        """A non-numeric tolerance exits 1."""
        assert main([
            "--responses", str(tmp_path / "r.csv"),
            "--output", str(tmp_path / "o.json"),
            "--tolerance", "lots",
        ]) == 1

    def test_negative_tolerance(self, tmp_path, data_dir):
        """A negative tolerance exits 1."""
        assert main([
            "--responses", str(tmp_path / "r.csv"),
            "--output", str(tmp_path / "o.json"),
            "--tolerance", "-1",
            "--data-dir", str(data_dir),
        ]) == 1


class TestRun:
    """Tests for full calibration runs."""

    def test_missing_log_uses_synthetic_samples(self, tmp_path, data_dir):
        """No response log still produces a report from synthetic data."""
        output = tmp_path / "nested" / "report.json"
        code = main([
            "--responses", str(tmp_path / "absent.csv"),
            "--output", str(output),
            "--data-dir", str(data_dir),
        ])
        assert code == 0
        report = json.loads(output.read_text(encoding="utf-8"))
        assert len(report["likert"]["items"]) == 6
        assert len(report["forcedChoice"]["items"]) == 6
        assert report["scenario"]["items"] == []
        assert len(report["responseQuality"]["respondents"]) == 40

    def test_apply_updates_catalog(self, tmp_path, data_dir, capsys):
        """--apply writes moved option weights back."""
        rows = [(f"r{i}", "FC-01|A", 1, 3000, 0.6) for i in range(5)]
        log = _write_log(tmp_path / "responses.csv", rows)
        output = tmp_path / "report.json"

        code = main([
            "--responses", str(log),
            "--output", str(output),
            "--apply",
            "--data-dir", str(data_dir),
        ])

        assert code == 0
        catalog = json.loads((data_dir / "questions_forced_choice.json").read_text(encoding="utf-8"))
        option = catalog["items"][0]["options"][0]
        assert option["key"] == "A"
        assert option["primary"]["weight"] == 0.6
        assert option["label"] == "Assemble a kit robot"
        assert "Weights applied: 1 (forced-choice 1, scenario 0)" in capsys.readouterr().out

    def test_missing_catalogs_fail(self, tmp_path):
        """A data directory without catalogs exits 1."""
        code = main([
            "--responses", str(tmp_path / "absent.csv"),
            "--output", str(tmp_path / "report.json"),
            "--data-dir", str(tmp_path / "empty"),
        ])
        assert code == 1

#!/usr/bin/env python3
"""
Aptitude Compass calibration manager: analysis and weight write-back CLI

Reads a response log, runs the calibration analysis against the question
catalogs, writes the analysis report as JSON and, with ``--apply``, writes
the recommended option weights back into the forced-choice and scenario
catalogs.

When the response log is missing or empty, deterministic synthetic samples
are analysed instead so the pipeline can still be smoke-tested.

Usage examples
--------------
  # Analyse a response log and write the report
  python scripts/calibration_manager.py --responses logs/responses.csv \\
      --output out/report.json

  # Also apply weights that moved by at least 0.1
  python scripts/calibration_manager.py --responses logs/responses.csv \\
      --output out/report.json --apply --tolerance 0.1
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

# Ensure the project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import structlog

from aptitude.config import get_settings
from aptitude.log import configure_logging
from aptitude.schemas.calibration import AnalysisReport, WeightApplyResult, option_item_id
from aptitude.services.calibration_service import CalibrationAnalyzer
from aptitude.services.question_bank import load_question_bank
from aptitude.services.response_store import generate_synthetic_samples, load_response_log
from aptitude.services.weight_service import WeightApplier

logger = structlog.get_logger("aptitude.calibration_manager")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description=(
            "Aptitude Compass Calibration Manager: item statistics, "
            "recommended weights and catalog write-back."
        ),
    )
    parser.add_argument(
        "--responses",
        type=str,
        required=True,
        help="Response log CSV (respondentId,itemId,value,responseTimeMs,confidence).",
    )
    parser.add_argument(
        "--output",
        type=str,
        required=True,
        help="Path of the JSON analysis report to write.",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        default=False,
        help="Write recommended option weights back into the catalogs.",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=settings.WEIGHT_TOLERANCE,
        help=f"Minimum weight change to apply (default: {settings.WEIGHT_TOLERANCE}).",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=settings.DATA_DIR,
        help=f"Directory holding the question catalogs (default: {settings.DATA_DIR}).",
    )
    return parser


# ──────────────────────────────────────────────────────────────────────────────
# Output
# ──────────────────────────────────────────────────────────────────────────────

def print_summary(report: AnalysisReport, output: Path) -> None:
    quality = report.response_quality
    print(f"\n{'=' * 60}")
    print(f"  Calibration Report")
    print(f"{'=' * 60}")
    print(f"  Likert items:           {len(report.likert.items)}")
    print(f"  Forced-choice options:  {len(report.forced_choice.items)}")
    print(f"  Scenario options:       {len(report.scenario.items)}")
    print(f"  Respondents:            {len(quality.respondents)}")
    print(f"  Flagged respondents:    {len(quality.flagged_respondents)}")

    if report.likert.cronbach_alpha_by_axis:
        print(f"\n  Cronbach's alpha by axis:")
        for axis, alpha in report.likert.cronbach_alpha_by_axis.items():
            shown = f"{alpha:.3f}" if alpha is not None else "n/a"
            print(f"    {axis:<16} {shown}")

    print(f"\n  Report written to {output}")
    print(f"{'=' * 60}\n")


def print_apply_result(result: WeightApplyResult) -> None:
    print(
        f"  Weights applied: {result.total_updated} "
        f"(forced-choice {result.forced_choice_updated}, "
        f"scenario {result.scenario_updated})"
    )
    for skipped in result.skipped_files:
        print(f"  Skipped: {skipped}")


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def run(args: argparse.Namespace) -> None:
    settings = get_settings()
    log = logger.bind(responses=args.responses, output=args.output)

    bank = load_question_bank(args.data_dir)
    records = load_response_log(args.responses)
    if not records:
        log.warning("response_log_empty_using_synthetic", seed=settings.SYNTHETIC_SEED)
        records = generate_synthetic_samples(
            (q.id for q in bank.likert),
            (
                option_item_id(q.id, o.key)
                for q in bank.forced_choice
                for o in q.options
            ),
            seed=settings.SYNTHETIC_SEED,
            respondents=settings.SYNTHETIC_RESPONDENTS,
        )

    report = CalibrationAnalyzer(bank).analyze(records)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.to_json(), encoding="utf-8")
    print_summary(report, output)

    if args.apply:
        applier = WeightApplier(tolerance=args.tolerance)
        result = applier.apply(
            report,
            settings.catalog_path("forced_choice", args.data_dir),
            settings.catalog_path("scenario", args.data_dir),
        )
        print_apply_result(result)


def main(argv: Optional[Sequence[str]] = None) -> int:
    configure_logging(get_settings().LOG_LEVEL)
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # argparse exits 0 for --help and 2 for bad arguments
        return 0 if exc.code == 0 else 1

    if args.tolerance < 0:
        parser.print_usage()
        print("error: --tolerance must be non-negative", file=sys.stderr)
        return 1

    try:
        run(args)
    except Exception as exc:
        logger.error("calibration_failed", error=str(exc), error_type=type(exc).__name__)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

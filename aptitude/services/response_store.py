"""
Aptitude Compass: Response log loading and synthetic samples.

The response log is a comma-separated table with a header row::

    respondentId,itemId,value,responseTimeMs,confidence

The last two columns are optional.  Malformed rows are skipped one by one
so that a single bad line never discards the whole log.  Lines that
are not valid UTF-8 count as malformed.
"""

from __future__ import annotations

import csv
import random
from pathlib import Path
from typing import Iterable, Optional

import structlog

from aptitude.schemas.calibration import ResponseRecord

logger = structlog.get_logger("aptitude.response_store")

SYNTHETIC_PREFIX = "synthetic"


def _parse_float(token: str) -> Optional[float]:
    try:
        return float(token.strip())
    except ValueError:
        return None


def parse_row(tokens: list[str]) -> Optional[ResponseRecord]:
    """Turn one CSV row into a record, or ``None`` when it must be skipped."""
    if len(tokens) < 3:
        return None
    value = _parse_float(tokens[2])
    if value is None:
        return None
    return ResponseRecord(
        respondent_id=tokens[0].strip(),
        item_id=tokens[1].strip(),
        value=value,
        response_time_ms=_parse_float(tokens[3]) if len(tokens) > 3 else None,
        confidence=_parse_float(tokens[4]) if len(tokens) > 4 else None,
    )


def load_response_log(path: str | Path) -> list[ResponseRecord]:
    """Read the response log at *path*.

    A missing file yields an empty list and a warning; callers decide
    whether to fall back to synthetic samples.
    """
    path = Path(path)
    log = logger.bind(path=str(path))
    if not path.is_file():
        log.warning("response_log_missing")
        return []

    records: list[ResponseRecord] = []
    skipped = 0
    with open(path, "rb") as fh:
        raw_lines = fh.read().splitlines()

    # line 1 is the header
    for line_number, raw in enumerate(raw_lines[1:], start=2):
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError:
            skipped += 1
            log.debug("response_row_undecodable", line=line_number)
            continue
        tokens = next(csv.reader([line]), [])
        if not tokens or all(not t.strip() for t in tokens):
            continue
        record = parse_row(tokens)
        if record is None:
            skipped += 1
            log.debug("response_row_skipped", line=line_number)
            continue
        records.append(record)

    log.info("response_log_loaded", records=len(records), skipped=skipped)
    return records


def generate_synthetic_samples(
    likert_ids: Iterable[str],
    option_ids: Iterable[str],
    seed: int = 42,
    respondents: int = 40,
) -> list[ResponseRecord]:
    """Deterministic fake responses for smoke-testing calibration.

    Parameters
    ----------
    likert_ids:
        Likert question ids; each gets a uniform 1-7 value.
    option_ids:
        Composite ``questionId|optionKey`` ids; each gets 1, 0 or -1 with
        probabilities 0.4, 0.3 and 0.3.
    seed:
        Seed for the private RNG; equal seeds give equal samples.
    respondents:
        Number of synthetic respondents (``synthetic-01`` ...).
    """
    likert_ids = list(likert_ids)
    option_ids = list(option_ids)
    rng = random.Random(seed)
    records: list[ResponseRecord] = []

    for index in range(1, respondents + 1):
        respondent = f"{SYNTHETIC_PREFIX}-{index:02d}"
        for item_id in likert_ids:
            records.append(
                ResponseRecord(
                    respondent_id=respondent,
                    item_id=item_id,
                    value=float(rng.randint(1, 7)),
                    response_time_ms=float(rng.randint(12, 34) * 100),
                    confidence=rng.random(),
                )
            )
        for option_id in option_ids:
            roll = rng.random()
            if roll < 0.4:
                value = 1.0
            elif roll < 0.7:
                value = 0.0
            else:
                value = -1.0
            records.append(
                ResponseRecord(
                    respondent_id=respondent,
                    item_id=option_id,
                    value=value,
                    response_time_ms=float(rng.randint(10, 24) * 100),
                    confidence=rng.random(),
                )
            )

    logger.info(
        "synthetic_samples_generated",
        seed=seed,
        respondents=respondents,
        records=len(records),
    )
    return records

"""
Aptitude Compass: Question bank loader.

Reads the three JSON catalogs (``{"items": [...]}``) from the configured
data directory and validates them into an immutable ``QuestionBank``.
Any unreadable or malformed catalog raises ``CatalogError``; a session
cannot start from a partial bank.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from aptitude.config import CatalogKind, get_settings
from aptitude.schemas.question import (
    CatalogDocument,
    ForcedChoiceQuestion,
    LikertQuestion,
    QuestionBank,
    ScenarioQuestion,
)
from aptitude.utils.storage import read_json

logger = structlog.get_logger("aptitude.question_bank")

_ITEM_MODELS: dict[str, type] = {
    "likert": LikertQuestion,
    "forced_choice": ForcedChoiceQuestion,
    "scenario": ScenarioQuestion,
}


class CatalogError(ValueError):
    """A question catalog is missing, unreadable or fails validation."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = str(path)
        self.reason = reason


def parse_catalog(kind: CatalogKind, document: Any, source: str = "<memory>") -> tuple:
    """Validate an already-decoded catalog document into question records."""
    try:
        root = CatalogDocument.model_validate(document)
    except ValidationError as exc:
        raise CatalogError(source, "root must be an object with an 'items' list") from exc

    model = _ITEM_MODELS[kind]
    questions = []
    seen: set[str] = set()
    for index, raw in enumerate(root.items):
        try:
            question = model.model_validate(raw)
        except ValidationError as exc:
            raise CatalogError(source, f"item {index} is invalid: {exc.errors()[0]['msg']}") from exc
        if question.id in seen:
            raise CatalogError(source, f"duplicate question id {question.id!r}")
        seen.add(question.id)
        questions.append(question)
    return tuple(questions)


def load_catalog(kind: CatalogKind, path: str | Path) -> tuple:
    path = Path(path)
    try:
        document = read_json(path)
    except FileNotFoundError as exc:
        raise CatalogError(path, "file not found") from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CatalogError(path, f"unreadable catalog ({exc})") from exc

    questions = parse_catalog(kind, document, source=str(path))
    logger.debug("catalog_loaded", kind=kind, path=str(path), count=len(questions))
    return questions


def load_question_bank(data_dir: str | Path | None = None) -> QuestionBank:
    """Load all three catalogs from *data_dir* (defaults to ``DATA_DIR``).

    Raises
    ------
    CatalogError
        If any of the catalogs cannot be read or validated.
    """
    settings = get_settings()
    bank = QuestionBank(
        likert=load_catalog("likert", settings.catalog_path("likert", data_dir)),
        forced_choice=load_catalog(
            "forced_choice", settings.catalog_path("forced_choice", data_dir)
        ),
        scenario=load_catalog("scenario", settings.catalog_path("scenario", data_dir)),
    )
    logger.info(
        "question_bank_loaded",
        likert=len(bank.likert),
        forced_choice=len(bank.forced_choice),
        scenario=len(bank.scenario),
    )
    return bank

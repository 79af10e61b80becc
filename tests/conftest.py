"""Shared pytest fixtures for Aptitude Compass tests."""
import shutil
from pathlib import Path

import pytest

from aptitude.schemas.question import (
    ForcedChoiceQuestion,
    LikertQuestion,
    QuestionBank,
    ScenarioQuestion,
)

PROJECT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@pytest.fixture
def likert_items():
    """Four Likert items over three axes; two are required."""
    return (
        LikertQuestion(
            id="L1",
            axis="activity",
            primary_category="hands_on",
            required=True,
            related_categories=[{"axis": "interest", "category": "engineering", "weight": 0.5}],
            tags=[{"name": "maker", "weight": 1.0}],
        ),
        LikertQuestion(
            id="L2",
            axis="activity",
            primary_category="hands_on",
            polarity="reverse",
        ),
        LikertQuestion(
            id="L3",
            axis="learning_style",
            primary_category="visual",
            required=True,
        ),
        LikertQuestion(
            id="L4",
            axis="interest",
            primary_category="research",
            related_categories=[
                {"axis": "learning_style", "category": "analytical", "weight": 0.6},
                {"axis": "interest", "category": "engineering", "weight": 0.2},
            ],
        ),
    )


@pytest.fixture
def forced_items():
    return (
        ForcedChoiceQuestion(
            id="F1",
            required=True,
            options=[
                {
                    "key": "A",
                    "primary": {"axis": "activity", "category": "hands_on", "score": 5, "weight": 1.0},
                    "secondary": [
                        {"axis": "interest", "category": "engineering", "score": 3, "weight": 1.0}
                    ],
                    "tags": [{"name": "maker", "weight": 1.0}],
                },
                {
                    "key": "B",
                    "primary": {
                        "axis": "learning_style",
                        "category": "collaborative",
                        "score": 5,
                        "weight": 1.0,
                    },
                },
            ],
        ),
    )


@pytest.fixture
def scenario_items():
    return (
        ScenarioQuestion(
            id="S1",
            title="Festival",
            options=[
                {"key": "A", "primary": {"axis": "activity", "category": "hands_on", "score": 4, "weight": 1.0}},
                {"key": "B", "primary": {"axis": "interest", "category": "design", "score": 3, "weight": 1.0}},
                {"key": "C", "primary": {"axis": "activity", "category": "social", "score": 2, "weight": 1.0}},
                {"key": "D", "primary": {"axis": "learning_style", "category": "visual", "score": 1, "weight": 1.0}},
            ],
        ),
    )


@pytest.fixture
def bank(likert_items, forced_items, scenario_items):
    return QuestionBank(
        likert=likert_items,
        forced_choice=forced_items,
        scenario=scenario_items,
    )


@pytest.fixture
def data_dir(tmp_path):
    """A writable copy of the shipped sample catalogs."""
    target = tmp_path / "data"
    shutil.copytree(PROJECT_DATA_DIR, target)
    return target

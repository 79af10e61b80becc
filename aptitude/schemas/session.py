"""
Aptitude Compass: Session, answer and scoring-result schemas.

A session is an explicit value: each interaction step receives a
``SessionState`` and returns a new one (see ``session_service``).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SKIP_OPTION_KEY = "SKIP"


class SessionModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ── Answers ─────────────────────────────────────────────────────────────────

class LikertAnswer(SessionModel):
    value: int = Field(ge=1, le=7)
    response_time_ms: Optional[float] = None


class ForcedChoiceAnswer(SessionModel):
    option_key: str
    confidence: float = Field(ge=0.0, le=1.0)
    response_time_ms: Optional[float] = None

    @property
    def skipped(self) -> bool:
        return self.option_key == SKIP_OPTION_KEY


class ScenarioAnswer(SessionModel):
    ranked_options: tuple[str, ...]
    response_time_ms: Optional[float] = None


class SessionState(SessionModel):
    """Everything one respondent has done so far.

    ``presented_at_ms`` is the caller-supplied clock reading taken when
    the current item was shown; it is used to derive response times.
    """

    likert_answers: dict[str, LikertAnswer] = Field(default_factory=dict)
    forced_answers: dict[str, ForcedChoiceAnswer] = Field(default_factory=dict)
    scenario_answers: dict[str, ScenarioAnswer] = Field(default_factory=dict)
    current_likert_id: Optional[str] = None
    presented_at_ms: Optional[float] = None

    @property
    def likert_values(self) -> dict[str, int]:
        return {qid: a.value for qid, a in self.likert_answers.items()}


# ── Scoring results ─────────────────────────────────────────────────────────

class ScoreEntry(SessionModel):
    name: str
    score: float


class TagScore(SessionModel):
    name: str
    score: float
    questions: tuple[str, ...] = ()


class CooccurrenceCell(SessionModel):
    x: str
    y: str
    count: int


class AggregateResult(SessionModel):
    category_score: tuple[ScoreEntry, ...] = ()
    aptitude_score: tuple[ScoreEntry, ...] = ()
    tag_score: tuple[TagScore, ...] = ()
    cooccurrence: tuple[CooccurrenceCell, ...] = ()

    def category_map(self) -> dict[str, float]:
        return {e.name: e.score for e in self.category_score}

    def aptitude_map(self) -> dict[str, float]:
        return {e.name: e.score for e in self.aptitude_score}


# ── Submission payload ──────────────────────────────────────────────────────

class ProfilePayload(SessionModel):
    nickname: str = ""
    grade: str = ""
    track: str = ""
    email: Optional[str] = None


class LikertAnswerPayload(SessionModel):
    id: str
    value: int
    response_time_ms: Optional[float] = None


class ForcedChoiceAnswerPayload(SessionModel):
    id: str
    option_key: str
    confidence: float
    response_time_ms: Optional[float] = None


class ScenarioAnswerPayload(SessionModel):
    id: str
    ranked_options: tuple[str, ...]
    response_time_ms: Optional[float] = None


class SubmissionPayload(SessionModel):
    profile: ProfilePayload
    likert: tuple[LikertAnswerPayload, ...] = ()
    forced_choice: tuple[ForcedChoiceAnswerPayload, ...] = ()
    scenario: tuple[ScenarioAnswerPayload, ...] = ()
    axis_average: dict[str, float] = Field(default_factory=dict)
    notes: Optional[str] = None

"""
Aptitude Compass: Session state transitions.

A ``SessionState`` is never mutated.  Every step takes the current state
and returns a new one, so a caller can keep history, retry a step or
discard it freely.  Inputs are validated before any new state is built;
an invalid answer raises ``ValueError`` and leaves the caller's state as
it was.

Clock readings (``now_ms``) are supplied by the caller.  Nothing here
reads the wall clock.
"""

from __future__ import annotations

from typing import Optional, Sequence

import structlog

from aptitude.schemas.question import LikertQuestion, QuestionBank
from aptitude.schemas.session import (
    SKIP_OPTION_KEY,
    AggregateResult,
    ForcedChoiceAnswer,
    ForcedChoiceAnswerPayload,
    LikertAnswer,
    LikertAnswerPayload,
    ProfilePayload,
    ScenarioAnswer,
    ScenarioAnswerPayload,
    SessionState,
    SubmissionPayload,
)
from aptitude.services.scoring_service import aggregate
from aptitude.services.selector_service import (
    axis_average,
    is_likert_complete,
    pick_next,
    recompute_axis_stats,
)

logger = structlog.get_logger("aptitude.session_service")

LIKERT_MIN: int = 1
LIKERT_MAX: int = 7


def _elapsed(state: SessionState, now_ms: Optional[float]) -> Optional[float]:
    if now_ms is None or state.presented_at_ms is None:
        return None
    return max(0.0, now_ms - state.presented_at_ms)


def start_session() -> SessionState:
    return SessionState()


# ── Likert phase ────────────────────────────────────────────────────────────

def present_next(
    state: SessionState,
    bank: QuestionBank,
    now_ms: Optional[float] = None,
    required_only: bool = True,
) -> tuple[SessionState, Optional[LikertQuestion]]:
    """Select the next Likert item and mark it as presented at *now_ms*.

    Returns the new state and the item, or ``None`` once the Likert phase
    has nothing left to offer.
    """
    answered = state.likert_values
    stats = recompute_axis_stats(bank.likert, answered)
    item = pick_next(bank.likert, answered, stats, required_only=required_only)
    new_state = state.model_copy(
        update={
            "current_likert_id": item.id if item is not None else None,
            "presented_at_ms": now_ms if item is not None else None,
        }
    )
    return new_state, item


def record_likert_answer(
    state: SessionState,
    bank: QuestionBank,
    value: int,
    now_ms: Optional[float] = None,
    question_id: Optional[str] = None,
) -> SessionState:
    """Answer the presented Likert item (or *question_id* explicitly).

    Raises
    ------
    ValueError
        If no item is presented, the id is unknown, or *value* is outside
        the 1-7 scale.
    """
    target = question_id or state.current_likert_id
    if target is None:
        raise ValueError("No Likert item is currently presented")
    if bank.likert_by_id(target) is None:
        raise ValueError(f"Unknown Likert question id {target!r}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Likert value must be an integer, got {value!r}")
    if not LIKERT_MIN <= value <= LIKERT_MAX:
        raise ValueError(f"Likert value must be within {LIKERT_MIN}..{LIKERT_MAX}, got {value}")

    elapsed = _elapsed(state, now_ms) if target == state.current_likert_id else None
    answer = LikertAnswer(value=value, response_time_ms=elapsed)
    logger.debug("likert_answered", question_id=target, value=value)
    return state.model_copy(
        update={
            "likert_answers": {**state.likert_answers, target: answer},
            "current_likert_id": None,
            "presented_at_ms": None,
        }
    )


def likert_complete(state: SessionState, bank: QuestionBank) -> bool:
    return is_likert_complete(bank.likert, state.likert_values)


# ── Forced-choice and scenario phases ───────────────────────────────────────

def record_forced_answer(
    state: SessionState,
    bank: QuestionBank,
    question_id: str,
    option_key: str,
    confidence: float,
    response_time_ms: Optional[float] = None,
) -> SessionState:
    question = bank.forced_choice_by_id(question_id)
    if question is None:
        raise ValueError(f"Unknown forced-choice question id {question_id!r}")
    if option_key != SKIP_OPTION_KEY and question.find_option(option_key) is None:
        raise ValueError(f"Question {question_id!r} has no option {option_key!r}")
    if not 0.0 <= confidence <= 1.0:
        raise ValueError(f"Confidence must be within [0, 1], got {confidence}")

    answer = ForcedChoiceAnswer(
        option_key=option_key,
        confidence=confidence,
        response_time_ms=response_time_ms,
    )
    return state.model_copy(
        update={"forced_answers": {**state.forced_answers, question_id: answer}}
    )


def skip_forced(
    state: SessionState,
    bank: QuestionBank,
    question_id: str,
    response_time_ms: Optional[float] = None,
) -> SessionState:
    """Record an explicit skip; it contributes nothing to any score."""
    return record_forced_answer(
        state, bank, question_id, SKIP_OPTION_KEY, 0.0, response_time_ms
    )


def record_scenario_ranking(
    state: SessionState,
    bank: QuestionBank,
    question_id: str,
    ranked_options: Sequence[str],
    response_time_ms: Optional[float] = None,
) -> SessionState:
    question = bank.scenario_by_id(question_id)
    if question is None:
        raise ValueError(f"Unknown scenario id {question_id!r}")
    if len(set(ranked_options)) != len(ranked_options):
        raise ValueError(f"Ranking for {question_id!r} repeats an option")
    unknown = [key for key in ranked_options if question.find_option(key) is None]
    if unknown:
        raise ValueError(f"Scenario {question_id!r} has no option(s) {unknown}")

    answer = ScenarioAnswer(
        ranked_options=tuple(ranked_options),
        response_time_ms=response_time_ms,
    )
    return state.model_copy(
        update={"scenario_answers": {**state.scenario_answers, question_id: answer}}
    )


def missing_required(state: SessionState, bank: QuestionBank) -> list[str]:
    """Ids of required questions of any format that are still unanswered."""
    missing = [q.id for q in bank.likert if q.required and q.id not in state.likert_answers]
    missing += [
        q.id for q in bank.forced_choice if q.required and q.id not in state.forced_answers
    ]
    missing += [
        q.id for q in bank.scenario if q.required and q.id not in state.scenario_answers
    ]
    return missing


# ── Results ─────────────────────────────────────────────────────────────────

def score_session(state: SessionState, bank: QuestionBank) -> AggregateResult:
    return aggregate(
        bank,
        state.likert_answers,
        state.forced_answers,
        state.scenario_answers,
    )


def build_submission(
    state: SessionState,
    bank: QuestionBank,
    profile: ProfilePayload,
    notes: Optional[str] = None,
) -> SubmissionPayload:
    """Assemble the payload handed to the response store at session end."""
    stats = recompute_axis_stats(bank.likert, state.likert_values)
    payload = SubmissionPayload(
        profile=profile,
        likert=tuple(
            LikertAnswerPayload(id=qid, value=a.value, response_time_ms=a.response_time_ms)
            for qid, a in state.likert_answers.items()
        ),
        forced_choice=tuple(
            ForcedChoiceAnswerPayload(
                id=qid,
                option_key=a.option_key,
                confidence=a.confidence,
                response_time_ms=a.response_time_ms,
            )
            for qid, a in state.forced_answers.items()
        ),
        scenario=tuple(
            ScenarioAnswerPayload(
                id=qid,
                ranked_options=a.ranked_options,
                response_time_ms=a.response_time_ms,
            )
            for qid, a in state.scenario_answers.items()
        ),
        axis_average=axis_average(stats),
        notes=notes,
    )
    logger.info(
        "submission_built",
        likert=len(payload.likert),
        forced_choice=len(payload.forced_choice),
        scenario=len(payload.scenario),
    )
    return payload

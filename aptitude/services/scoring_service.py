"""
Aptitude Compass: Response aggregation.

Folds every answer of a session into four views:

  1. **category_score**: all weighted-category contributions;
  2. **aptitude_score**: the same contributions restricted to the
     aptitude axes (``activity`` and ``learning_style``);
  3. **tag_score**: contributions keyed by tag name, with the ids of the
     questions that fed each tag;
  4. **cooccurrence**: how often two scored categories appear together
     on one Likert question or one option in the whole bank.

Aggregation is recomputed from scratch on every call.  Answers that name
an unknown question or option are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Optional

import structlog

from aptitude.schemas.question import (
    LikertQuestion,
    QuestionBank,
    QuestionOption,
    Tag,
)
from aptitude.schemas.session import (
    AggregateResult,
    CooccurrenceCell,
    ForcedChoiceAnswer,
    LikertAnswer,
    ScenarioAnswer,
    ScoreEntry,
    TagScore,
)

logger = structlog.get_logger("aptitude.scoring_service")


@dataclass
class _Contribution:
    axis: str
    category: str
    amount: float


@dataclass
class _TagAccumulator:
    score: float = 0.0
    questions: list[str] = field(default_factory=list)

    def add(self, amount: float, question_id: str) -> None:
        self.score += amount
        if question_id not in self.questions:
            self.questions.append(question_id)


def _add(scores: dict[str, float], key: str, amount: float) -> None:
    scores[key] = scores.get(key, 0.0) + amount


def _ranked(scores: Mapping[str, float]) -> tuple[ScoreEntry, ...]:
    # sorted() is stable, so equal scores keep discovery order
    ordered = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
    return tuple(ScoreEntry(name=name, score=score) for name, score in ordered)


class ResponseAggregator:
    """Scores one respondent's answers against a question bank.

    Constants are class attributes so tests can introspect them.
    """

    APTITUDE_AXES: frozenset[str] = frozenset({"activity", "learning_style"})

    RANK_WEIGHTS: tuple[float, ...] = (1.0, 0.5, 0.25)

    def __init__(self, bank: QuestionBank) -> None:
        self.bank = bank

    # ══════════════════════════════════════════════════════════════════════
    # Per-answer contributions
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _likert_value(answer: LikertAnswer | int) -> int:
        return answer.value if isinstance(answer, LikertAnswer) else int(answer)

    @staticmethod
    def _likert_contributions(
        question: LikertQuestion, normalized: int
    ) -> Iterator[_Contribution]:
        yield _Contribution(question.axis, question.primary_category, float(normalized))
        for related in question.related_categories:
            yield _Contribution(related.axis, related.category, normalized * related.weight)

    @staticmethod
    def _option_contributions(option: QuestionOption, scale: float) -> Iterator[_Contribution]:
        for wc in option.categories:
            yield _Contribution(wc.axis, wc.category, wc.score * wc.weight * scale)

    @staticmethod
    def _option_tag_amount(option: QuestionOption, scale: float, tag: Tag) -> float:
        return option.primary.score * option.primary.weight * scale * tag.weight

    def rank_weight(self, position: int) -> Optional[float]:
        if 0 <= position < len(self.RANK_WEIGHTS):
            return self.RANK_WEIGHTS[position]
        return None

    # ══════════════════════════════════════════════════════════════════════
    # aggregate
    # ══════════════════════════════════════════════════════════════════════

    def aggregate(
        self,
        likert_answers: Mapping[str, LikertAnswer | int],
        forced_answers: Mapping[str, ForcedChoiceAnswer],
        scenario_answers: Mapping[str, ScenarioAnswer],
    ) -> AggregateResult:
        """Fold all answers into category, aptitude and tag scores.

        Parameters
        ----------
        likert_answers:
            Raw 1-7 values (or ``LikertAnswer``) keyed by question id.
        forced_answers:
            Forced-choice answers keyed by question id; ``SKIP`` answers
            contribute nothing.
        scenario_answers:
            Rankings keyed by scenario id; positions beyond the rank
            weights contribute nothing.

        Returns
        -------
        AggregateResult
            Scores sorted descending (ties in discovery order) and the
            co-occurrence cells for the scored categories.
        """
        categories: dict[str, float] = {}
        aptitudes: dict[str, float] = {}
        tags: dict[str, _TagAccumulator] = {}

        def fold(contribution: _Contribution) -> None:
            _add(categories, contribution.category, contribution.amount)
            if contribution.axis in self.APTITUDE_AXES:
                _add(aptitudes, contribution.category, contribution.amount)

        def fold_tag(tag: Tag, amount: float, question_id: str) -> None:
            tags.setdefault(tag.name, _TagAccumulator()).add(amount, question_id)

        for question_id, answer in likert_answers.items():
            question = self.bank.likert_by_id(question_id)
            if question is None:
                continue
            normalized = question.normalize(self._likert_value(answer))
            for contribution in self._likert_contributions(question, normalized):
                fold(contribution)
            for tag in question.tags:
                fold_tag(tag, normalized * tag.weight, question_id)

        for question_id, fc_answer in forced_answers.items():
            if fc_answer.skipped:
                continue
            fc_question = self.bank.forced_choice_by_id(question_id)
            if fc_question is None:
                continue
            option = fc_question.find_option(fc_answer.option_key)
            if option is None:
                continue
            for contribution in self._option_contributions(option, fc_answer.confidence):
                fold(contribution)
            for tag in option.tags:
                fold_tag(tag, self._option_tag_amount(option, fc_answer.confidence, tag), question_id)

        for question_id, sc_answer in scenario_answers.items():
            sc_question = self.bank.scenario_by_id(question_id)
            if sc_question is None:
                continue
            for position, option_key in enumerate(sc_answer.ranked_options):
                weight = self.rank_weight(position)
                if weight is None:
                    break
                option = sc_question.find_option(option_key)
                if option is None:
                    continue
                for contribution in self._option_contributions(option, weight):
                    fold(contribution)
                for tag in option.tags:
                    fold_tag(tag, self._option_tag_amount(option, weight, tag), question_id)

        ordered_tags = sorted(tags.items(), key=lambda kv: kv[1].score, reverse=True)
        result = AggregateResult(
            category_score=_ranked(categories),
            aptitude_score=_ranked(aptitudes),
            tag_score=tuple(
                TagScore(name=name, score=acc.score, questions=tuple(acc.questions))
                for name, acc in ordered_tags
            ),
            cooccurrence=self.cooccurrence(categories.keys()),
        )
        logger.debug(
            "aggregate_complete",
            categories=len(result.category_score),
            aptitudes=len(result.aptitude_score),
            tags=len(result.tag_score),
            pairs=len(result.cooccurrence),
        )
        return result

    # ══════════════════════════════════════════════════════════════════════
    # cooccurrence
    # ══════════════════════════════════════════════════════════════════════

    def _category_sets(self) -> Iterator[list[str]]:
        for question in self.bank.likert:
            yield [question.primary_category, *(rc.category for rc in question.related_categories)]
        for option_question in (*self.bank.forced_choice, *self.bank.scenario):
            for option in option_question.options:
                yield [wc.category for wc in option.categories]

    def cooccurrence(self, scored_categories: Iterable[str]) -> tuple[CooccurrenceCell, ...]:
        """Count category pairs that share a Likert question or an option.

        Only categories in *scored_categories* take part.  Each pair is
        keyed with ``x < y`` and appears once.
        """
        top = set(scored_categories)
        if not top:
            return ()

        counts: dict[tuple[str, str], int] = {}
        for names in self._category_sets():
            present = [c for c in dict.fromkeys(names) if c in top]
            for i, first in enumerate(present):
                for second in present[i + 1:]:
                    key = (first, second) if first < second else (second, first)
                    counts[key] = counts.get(key, 0) + 1

        return tuple(
            CooccurrenceCell(x=x, y=y, count=count)
            for (x, y), count in sorted(counts.items())
        )


# ══════════════════════════════════════════════════════════════════════════
# Module-level helpers
# ══════════════════════════════════════════════════════════════════════════

def aggregate(
    bank: QuestionBank,
    likert_answers: Mapping[str, LikertAnswer | int],
    forced_answers: Mapping[str, ForcedChoiceAnswer],
    scenario_answers: Mapping[str, ScenarioAnswer],
) -> AggregateResult:
    return ResponseAggregator(bank).aggregate(likert_answers, forced_answers, scenario_answers)


def top_aptitudes(result: AggregateResult, n: int = 3) -> tuple[ScoreEntry, ...]:
    return result.aptitude_score[:n]


def top_tags(result: AggregateResult, n: int = 10) -> tuple[TagScore, ...]:
    return result.tag_score[:n]

"""
Aptitude Compass CalibrationAnalyzer: offline weight calibration

Consumes a batch of response records and derives, per item:

  1. **Descriptive statistics**: mean and sample variance for every
     Likert item and every forced-choice / scenario option.
  2. **Discrimination**: item-total correlation for Likert items.
  3. **Recommended weights**: correlation-scaled for Likert items,
     variance-bucketed for options, then adjusted by the average response
     time and confidence into an effective weight.
  4. **Axis reliability**: Cronbach's alpha over each axis's items.
  5. **Respondent quality**: straightlining, fast responding and low
     confidence flags.

The analyzer never raises on thin data: a statistic whose preconditions
are not met is reported as ``None``.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

import structlog

from aptitude.schemas.calibration import (
    AnalysisReport,
    ItemSummary,
    LikertAnalysis,
    OptionAnalysis,
    RespondentQuality,
    ResponseQualityReport,
    ResponseRecord,
    option_item_id,
    split_option_item_id,
)
from aptitude.schemas.question import OptionQuestion, QuestionBank
from aptitude.utils import psychometrics as pm

logger = structlog.get_logger("aptitude.calibration_service")


class CalibrationAnalyzer:
    """Batch psychometric analysis of a response log against one bank.

    Quality thresholds are class-level attributes so they can be
    introspected or overridden in tests.
    """

    # ── Constants ─────────────────────────────────────────────────────────

    MIN_CORRELATION_PAIRS: int = 3

    STRAIGHTLINE_MIN_ANSWERS: int = 10
    STRAIGHTLINE_MAX_DISTINCT: int = 2
    FAST_RESPONSE_MS: float = 1500.0
    LOW_CONFIDENCE: float = 0.4

    def __init__(self, bank: QuestionBank) -> None:
        self.bank = bank
        self._likert_ids = {q.id for q in bank.likert}
        self._forced_ids = {q.id for q in bank.forced_choice}

    # ══════════════════════════════════════════════════════════════════════
    # analyze: full report
    # ══════════════════════════════════════════════════════════════════════

    def analyze(self, records: Sequence[ResponseRecord]) -> AnalysisReport:
        """Produce the full analysis report for *records*.

        Parameters
        ----------
        records:
            Response log rows; Likert rows carry the question id, option
            rows carry ``questionId|optionKey``.

        Returns
        -------
        AnalysisReport
            Item summaries per format, alpha per Likert axis and the
            respondent quality lists.  An empty log yields empty lists.
        """
        records = list(records)
        log = logger.bind(records=len(records))
        log.info("analysis_start")

        by_item: dict[str, list[ResponseRecord]] = defaultdict(list)
        for record in records:
            by_item[record.item_id].append(record)

        report = AnalysisReport(
            likert=self.analyze_likert(records, by_item),
            forced_choice=OptionAnalysis(
                items=self._option_summaries(self.bank.forced_choice, by_item)
            ),
            scenario=OptionAnalysis(
                items=self._option_summaries(self.bank.scenario, by_item)
            ),
            response_quality=self.analyze_quality(records),
        )

        log.info(
            "analysis_complete",
            likert_items=len(report.likert.items),
            forced_choice_items=len(report.forced_choice.items),
            scenario_items=len(report.scenario.items),
            flagged_respondents=len(report.response_quality.flagged_respondents),
        )
        return report

    # ══════════════════════════════════════════════════════════════════════
    # Shared per-item helpers
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _timing(records: Sequence[ResponseRecord]) -> tuple[Optional[float], Optional[float]]:
        times = [r.response_time_ms for r in records if r.response_time_ms is not None]
        confidences = [r.confidence for r in records if r.confidence is not None]
        return pm.mean_or_none(times), pm.mean_or_none(confidences)

    @staticmethod
    def effective_weight(
        recommended: float,
        average_time_ms: Optional[float],
        average_confidence: Optional[float],
    ) -> float:
        return (
            recommended
            * pm.time_multiplier(average_time_ms)
            * pm.confidence_multiplier(average_confidence)
        )

    # ══════════════════════════════════════════════════════════════════════
    # Likert items
    # ══════════════════════════════════════════════════════════════════════

    def item_total_correlation(
        self,
        item_id: str,
        records: Sequence[ResponseRecord],
    ) -> Optional[float]:
        """Correlate an item with each respondent's mean on every other item.

        Repeated answers by one respondent are averaged before pairing.
        Needs at least ``MIN_CORRELATION_PAIRS`` respondents who also
        answered some other item.
        """
        own: dict[str, list[float]] = defaultdict(list)
        others: dict[str, list[float]] = defaultdict(list)
        for record in records:
            if record.item_id == item_id:
                own[record.respondent_id].append(record.value)
            else:
                others[record.respondent_id].append(record.value)

        if sum(len(v) for v in own.values()) < self.MIN_CORRELATION_PAIRS:
            return None

        item_means: list[float] = []
        total_means: list[float] = []
        for respondent, values in own.items():
            rest = others.get(respondent)
            if not rest:
                continue
            item_means.append(sum(values) / len(values))
            total_means.append(sum(rest) / len(rest))

        if len(item_means) < self.MIN_CORRELATION_PAIRS:
            return None
        return pm.pearson(item_means, total_means)

    def analyze_likert(
        self,
        records: Sequence[ResponseRecord],
        by_item: dict[str, list[ResponseRecord]],
    ) -> LikertAnalysis:
        summaries: list[ItemSummary] = []
        axis_respondents: dict[str, set[str]] = defaultdict(set)

        for question in self.bank.likert:
            item_records = by_item.get(question.id)
            if not item_records:
                continue
            values = [r.value for r in item_records]
            correlation = self.item_total_correlation(question.id, records)
            recommended = pm.likert_recommended_weight(correlation)
            average_time, average_confidence = self._timing(item_records)

            summaries.append(
                ItemSummary(
                    item_id=question.id,
                    axis=question.axis,
                    category=question.primary_category,
                    mean=sum(values) / len(values),
                    variance=pm.sample_variance(values),
                    recommended_weight=recommended,
                    effective_weight=self.effective_weight(
                        recommended, average_time, average_confidence
                    ),
                    item_total_correlation=correlation,
                    average_response_time_ms=average_time,
                    average_confidence=average_confidence,
                )
            )
            axis_respondents[question.axis].update(r.respondent_id for r in item_records)

        variances_by_axis: dict[str, list[float]] = defaultdict(list)
        for summary in summaries:
            variances_by_axis[summary.axis].append(summary.variance)

        alpha_by_axis = {
            axis: pm.cronbach_alpha(variances, len(axis_respondents[axis]))
            for axis, variances in variances_by_axis.items()
        }
        return LikertAnalysis(items=tuple(summaries), cronbach_alpha_by_axis=alpha_by_axis)

    # ══════════════════════════════════════════════════════════════════════
    # Forced-choice / scenario options
    # ══════════════════════════════════════════════════════════════════════

    def _option_summaries(
        self,
        questions: Iterable[OptionQuestion],
        by_item: dict[str, list[ResponseRecord]],
    ) -> tuple[ItemSummary, ...]:
        summaries: list[ItemSummary] = []
        for question in questions:
            for option in question.options:
                composite_id = option_item_id(question.id, option.key)
                item_records = by_item.get(composite_id)
                if not item_records:
                    continue
                values = [r.value for r in item_records]
                variance = pm.sample_variance(values)
                recommended = pm.option_recommended_weight(variance)
                average_time, average_confidence = self._timing(item_records)

                summaries.append(
                    ItemSummary(
                        item_id=composite_id,
                        axis=option.primary.axis,
                        category=option.primary.category,
                        mean=sum(values) / len(values),
                        variance=variance,
                        recommended_weight=recommended,
                        effective_weight=self.effective_weight(
                            recommended, average_time, average_confidence
                        ),
                        average_response_time_ms=average_time,
                        average_confidence=average_confidence,
                    )
                )
        return tuple(summaries)

    # ══════════════════════════════════════════════════════════════════════
    # Respondent quality
    # ══════════════════════════════════════════════════════════════════════

    def _is_forced_choice_record(self, record: ResponseRecord) -> bool:
        parts = split_option_item_id(record.item_id)
        return parts is not None and parts[0] in self._forced_ids

    def respondent_quality(
        self, respondent_id: str, records: Sequence[ResponseRecord]
    ) -> RespondentQuality:
        likert_values = [r.value for r in records if r.item_id in self._likert_ids]
        forced_count = sum(1 for r in records if self._is_forced_choice_record(r))
        times = [r.response_time_ms for r in records if r.response_time_ms is not None]
        confidences = [r.confidence for r in records if r.confidence is not None]

        average_time = pm.mean_or_none(times)
        average_confidence = pm.mean_or_none(confidences)
        unique_count = len(set(likert_values))

        return RespondentQuality(
            respondent_id=respondent_id,
            likert_response_count=len(likert_values),
            likert_unique_count=unique_count,
            forced_choice_count=forced_count,
            average_time_ms=average_time,
            std_time_ms=pm.sample_std(times),
            average_confidence=average_confidence,
            flag_straightliner=(
                len(likert_values) >= self.STRAIGHTLINE_MIN_ANSWERS
                and unique_count <= self.STRAIGHTLINE_MAX_DISTINCT
            ),
            flag_fast_responder=(
                average_time is not None and average_time < self.FAST_RESPONSE_MS
            ),
            flag_low_confidence=(
                average_confidence is not None and average_confidence < self.LOW_CONFIDENCE
            ),
        )

    def analyze_quality(self, records: Sequence[ResponseRecord]) -> ResponseQualityReport:
        by_respondent: dict[str, list[ResponseRecord]] = defaultdict(list)
        for record in records:
            by_respondent[record.respondent_id].append(record)

        respondents = tuple(
            self.respondent_quality(respondent_id, respondent_records)
            for respondent_id, respondent_records in by_respondent.items()
        )
        flagged = tuple(r for r in respondents if r.flagged)
        if flagged:
            logger.warning(
                "respondents_flagged",
                count=len(flagged),
                respondent_ids=[r.respondent_id for r in flagged],
            )
        return ResponseQualityReport(respondents=respondents, flagged_respondents=flagged)

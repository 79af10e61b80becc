"""
Aptitude Compass: Calibration schemas (response log rows, analysis report,
weight write-back results).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

OPTION_ID_SEPARATOR = "|"


class ReportModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class ResponseRecord(ReportModel):
    respondent_id: str
    item_id: str
    value: float
    response_time_ms: Optional[float] = None
    confidence: Optional[float] = None

    @property
    def is_option(self) -> bool:
        return OPTION_ID_SEPARATOR in self.item_id


def option_item_id(question_id: str, option_key: str) -> str:
    """Composite calibration id for a forced-choice / scenario option."""
    return f"{question_id}{OPTION_ID_SEPARATOR}{option_key}"


def split_option_item_id(item_id: str) -> tuple[str, str] | None:
    """Return ``(question_id, option_key)`` or ``None`` for non-option ids."""
    parts = item_id.split(OPTION_ID_SEPARATOR)
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


class ItemSummary(ReportModel):
    item_id: str
    axis: str
    category: str
    mean: float
    variance: float
    recommended_weight: float
    effective_weight: float
    item_total_correlation: Optional[float] = None
    average_response_time_ms: Optional[float] = None
    average_confidence: Optional[float] = None


class LikertAnalysis(ReportModel):
    items: tuple[ItemSummary, ...] = ()
    cronbach_alpha_by_axis: dict[str, Optional[float]] = {}


class OptionAnalysis(ReportModel):
    items: tuple[ItemSummary, ...] = ()


class RespondentQuality(ReportModel):
    respondent_id: str
    likert_response_count: int
    likert_unique_count: int
    forced_choice_count: int
    average_time_ms: Optional[float] = None
    std_time_ms: Optional[float] = None
    average_confidence: Optional[float] = None
    flag_straightliner: bool = False
    flag_fast_responder: bool = False
    flag_low_confidence: bool = False

    @property
    def flagged(self) -> bool:
        return self.flag_straightliner or self.flag_fast_responder or self.flag_low_confidence


class ResponseQualityReport(ReportModel):
    respondents: tuple[RespondentQuality, ...] = ()
    flagged_respondents: tuple[RespondentQuality, ...] = ()


class AnalysisReport(ReportModel):
    likert: LikertAnalysis = LikertAnalysis()
    forced_choice: OptionAnalysis = OptionAnalysis()
    scenario: OptionAnalysis = OptionAnalysis()
    response_quality: ResponseQualityReport = ResponseQualityReport()


class WeightPatch(ReportModel):
    question_id: str
    option_key: str
    previous_weight: float
    new_weight: float


class WeightApplyResult(ReportModel):
    forced_choice_updated: int = 0
    scenario_updated: int = 0
    skipped_files: tuple[str, ...] = ()
    patches: tuple[WeightPatch, ...] = ()

    @property
    def total_updated(self) -> int:
        return self.forced_choice_updated + self.scenario_updated

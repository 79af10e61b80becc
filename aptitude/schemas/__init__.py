"""
Aptitude Compass: schema registry.

Re-exports the record types most call-sites need so they can be imported
from ``aptitude.schemas`` directly.
"""

from aptitude.schemas.question import (
    ForcedChoiceQuestion,
    LikertQuestion,
    QuestionBank,
    QuestionOption,
    RelatedCategory,
    ScenarioQuestion,
    Tag,
    WeightedCategory,
)
from aptitude.schemas.session import (
    AggregateResult,
    ForcedChoiceAnswer,
    LikertAnswer,
    ScenarioAnswer,
    SessionState,
)
from aptitude.schemas.calibration import (
    AnalysisReport,
    ItemSummary,
    RespondentQuality,
    ResponseRecord,
)

__all__ = [
    "ForcedChoiceQuestion",
    "LikertQuestion",
    "QuestionBank",
    "QuestionOption",
    "RelatedCategory",
    "ScenarioQuestion",
    "Tag",
    "WeightedCategory",
    "AggregateResult",
    "ForcedChoiceAnswer",
    "LikertAnswer",
    "ScenarioAnswer",
    "SessionState",
    "AnalysisReport",
    "ItemSummary",
    "RespondentQuality",
    "ResponseRecord",
]

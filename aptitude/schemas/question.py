"""
Aptitude Compass: Question bank schemas.

Catalog records are frozen: a loaded bank is an immutable value for the
lifetime of a session or a calibration run.  JSON catalogs use camelCase
keys; attributes are snake_case and either spelling is accepted on input.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    """Base for every catalog record."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Tag(CatalogModel):
    name: str
    weight: float = 1.0


class RelatedCategory(CatalogModel):
    axis: str
    category: str
    weight: float = Field(ge=0.0)


class WeightedCategory(CatalogModel):
    axis: str
    category: str
    score: float
    weight: float = 1.0


class LikertQuestion(CatalogModel):
    id: str
    axis: str
    primary_category: str
    prompt: str = ""
    polarity: Literal["positive", "reverse"] = "positive"
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None
    required: bool = False
    related_categories: tuple[RelatedCategory, ...] = ()
    tags: tuple[Tag, ...] = ()

    @field_validator("axis", "primary_category")
    @classmethod
    def _must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("axis and primaryCategory must be non-empty")
        return v

    @property
    def related_weight(self) -> float:
        return sum(rc.weight for rc in self.related_categories)

    def normalize(self, value: int) -> int:
        """Flip a 1-7 answer around the midpoint for reverse-keyed items."""
        return 8 - value if self.polarity == "reverse" else value


class QuestionOption(CatalogModel):
    """An option of a forced-choice or scenario question."""

    key: str
    label: str = ""
    primary: WeightedCategory
    secondary: tuple[WeightedCategory, ...] = ()
    tags: tuple[Tag, ...] = ()

    @property
    def categories(self) -> list[WeightedCategory]:
        return [self.primary, *self.secondary]


class OptionQuestion(CatalogModel):
    id: str
    required: bool = False
    options: tuple[QuestionOption, ...]

    @model_validator(mode="after")
    def _option_keys_unique(self) -> "OptionQuestion":
        keys = [o.key for o in self.options]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Question {self.id!r} has duplicate option keys")
        return self

    def find_option(self, key: str) -> QuestionOption | None:
        for option in self.options:
            if option.key == key:
                return option
        return None


class ForcedChoiceQuestion(OptionQuestion):
    prompt: str = ""


class ScenarioQuestion(OptionQuestion):
    title: str = ""
    scenario: str = ""


class QuestionBank(CatalogModel):
    """The three catalogs loaded together for one session or batch."""

    likert: tuple[LikertQuestion, ...] = ()
    forced_choice: tuple[ForcedChoiceQuestion, ...] = ()
    scenario: tuple[ScenarioQuestion, ...] = ()

    def likert_by_id(self, question_id: str) -> LikertQuestion | None:
        return next((q for q in self.likert if q.id == question_id), None)

    def forced_choice_by_id(self, question_id: str) -> ForcedChoiceQuestion | None:
        return next((q for q in self.forced_choice if q.id == question_id), None)

    def scenario_by_id(self, question_id: str) -> ScenarioQuestion | None:
        return next((q for q in self.scenario if q.id == question_id), None)


class CatalogDocument(BaseModel):
    """Root shape of every catalog file: ``{"items": [...]}``."""

    items: list[dict]

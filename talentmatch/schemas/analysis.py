# talentmatch/schemas/analysis.py
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SkillMatch(_Camel):
    skill: str
    candidate_score: Optional[float] = None  # None when the candidate lacks the skill
    expected_score: Optional[float] = None
    years_experience: Optional[float] = None
    mandatory: bool = False


class TraitMatch(_Camel):
    trait: str
    candidate_score: float = 0.0
    expected_score: Optional[float] = None

    @field_validator("candidate_score", mode="before")
    @classmethod
    def _none_is_zero(cls, v):
        return 0.0 if v is None else v


class MatchReport(_Camel):
    """The ``data`` payload stored on an analysis record."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    percentage_skill_match: float = Field(ge=0, le=100)
    percentage_cultural_fit_match: float = Field(ge=0, le=100)
    percentage_match_score: float = Field(ge=0, le=100)
    per_skill_match: List[SkillMatch]
    per_cultural_fit_match: List[TraitMatch]
    strategy: str = ""

    def to_data(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class AcknowledgeIn(BaseModel):
    candidate_ids: List[str]

# talentmatch/schemas/job.py
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from talentmatch.schemas.candidate import CulturalFitIn


class ExpectedSkill(BaseModel):
    name: str
    score: float = Field(0.0, ge=0, le=5)
    years_experience: float = Field(1.0, ge=0)
    mandatory: bool = False


class JobIn(BaseModel):
    title: str
    description: str
    location: Optional[str] = ""
    expected_skills: List[ExpectedSkill] = []
    expected_cultural_fit: Optional[CulturalFitIn] = None


class JobOut(BaseModel):
    id: str
    organisation_id: str
    title: str
    description: str
    location: str
    expected_skills: List[dict]
    expected_cultural_fit: Dict[str, float]
    created_at: datetime

    class Config:
        from_attributes = True

# talentmatch/schemas/candidate.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class SkillIn(BaseModel):
    name: str
    score: float = Field(0.0, ge=0, le=5)
    years_experience: float = Field(0.0, ge=0)


class CulturalFitIn(BaseModel):
    product_score: float = Field(0.0, ge=0, le=5)
    service_score: float = Field(0.0, ge=0, le=5)
    startup_score: float = Field(0.0, ge=0, le=5)
    mnc_score: float = Field(0.0, ge=0, le=5)
    loyalty_score: float = Field(0.0, ge=0, le=5)
    coding_score: float = Field(0.0, ge=0, le=5)
    leadership_score: float = Field(0.0, ge=0, le=5)
    architecture_score: float = Field(0.0, ge=0, le=5)

    class Config:
        from_attributes = True


class CandidateIn(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    resume_key: Optional[str] = Field(None, description="Object-storage key (or URL) of the resume")
    summary: Optional[str] = None
    designation: str = ""
    current_location: str = ""
    years_of_experience: Optional[float] = None
    skills: List[SkillIn] = []
    cultural_fit: Optional[CulturalFitIn] = None


class SkillOut(BaseModel):
    name: str
    score: float
    years_experience: float

    class Config:
        from_attributes = True


class CandidateOut(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    organisation_id: str
    designation: str
    current_location: str
    years_of_experience: Optional[float] = None
    summary: Optional[str] = None
    total_bookmarks: int
    skills: List[SkillOut] = []
    cultural_fit: Optional[CulturalFitIn] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CandidateForJobOut(BaseModel):
    candidate: CandidateOut
    analysis: Optional[dict] = None
    status: str
    percentage_match_score: Optional[float] = None
    rank: Optional[int] = None

# talentmatch/schemas/search.py
from typing import List, Optional

from pydantic import BaseModel


class RankedCandidate(BaseModel):
    candidate_id: str
    name: str
    email: str
    designation: str = ""
    current_location: str = ""
    years_of_experience: Optional[float] = None
    total_bookmarks: int = 0
    percentage_match_score: float
    rank: Optional[int] = None  # snapshot at analysis time, not the page order
    newly_analysed: bool = False
    analysis: Optional[dict] = None
    is_bookmarked: bool = False
    is_bookmarked_by_me: bool = False
    bookmark_id: Optional[str] = None
    bookmarked_by: List[str] = []


class RankedPage(BaseModel):
    candidates: List[RankedCandidate]
    total_candidates: int
    load_more_exists: bool


class LocalMatch(BaseModel):
    candidate_id: str
    name: str
    designation: str = ""
    skill_similarity: float
    cultural_fit_similarity: float
    percentage_match_score: float
    analysis: dict

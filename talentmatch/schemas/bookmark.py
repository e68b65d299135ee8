# talentmatch/schemas/bookmark.py
from datetime import datetime
from pydantic import BaseModel

class BookmarkIn(BaseModel):
    candidate_id: str
    job_id: str

class BookmarkOut(BaseModel):
    id: str
    candidate_id: str
    member_id: str
    job_id: str
    created_at: datetime

    class Config:
        from_attributes = True

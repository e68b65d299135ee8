# talentmatch/schemas/call.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ScheduleCallIn(BaseModel):
    job_id: str
    candidate_id: str
    assistant_id: str
    phone_number: str = Field(..., description="Any human format; normalised to E.164")
    start_time: datetime  # UTC


class ScheduledCallOut(BaseModel):
    id: str
    job_id: str
    candidate_id: str
    assistant_id: str
    phone_number: str
    start_time: datetime
    end_time: datetime
    is_called: bool
    call_id: Optional[str] = None

    class Config:
        from_attributes = True


class NextSlotOut(BaseModel):
    start_time: datetime
    end_time: datetime

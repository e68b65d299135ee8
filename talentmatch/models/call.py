from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, DateTime, JSON
from talentmatch.core.clock import new_id, utcnow
from talentmatch.db.base import Base

class ScheduledCall(Base):
    """
    PENDING (is_called false) -> CLAIMED (is_called true, no call_id)
    -> DISPATCHED (call_id set). The claim is a conditional UPDATE on
    is_called; it is never rolled back, even when dispatch fails.
    """
    __tablename__ = "scheduled_calls"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    start_time: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    job_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    candidate_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    assistant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    organisation_id: Mapped[str] = mapped_column(String(64), default="")
    recruiter_email: Mapped[str | None] = mapped_column(String(255))
    is_called: Mapped[bool] = mapped_column(Boolean, index=True, default=False)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime)
    call_id: Mapped[str | None] = mapped_column(String(128), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class CallDetail(Base):
    __tablename__ = "call_details"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    job_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    candidate_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    organisation_id: Mapped[str] = mapped_column(String(64), index=True, default="")
    assistant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    call_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    recruiter_email: Mapped[str | None] = mapped_column(String(255))
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

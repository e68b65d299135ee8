import enum
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Float, Boolean, Text, DateTime, JSON, UniqueConstraint
from talentmatch.core.clock import new_id, utcnow
from talentmatch.db.base import Base


class AnalysisStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


class JobAnalysis(Base):
    """
    One LLM match report per (job, candidate).

    The unique constraint is the idempotency contract: a placeholder row is
    inserted in PENDING state to claim the pair before any expensive work.
    ``rank`` is a snapshot taken when the row completed and goes stale as soon
    as another analysis for the job finishes; never order by it.
    """
    __tablename__ = "job_analyses"
    __table_args__ = (
        UniqueConstraint("job_id", "candidate_id", name="uq_job_analyses_job_candidate"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    job_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    candidate_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(16), index=True, default=AnalysisStatus.PENDING.value)
    data: Mapped[dict | None] = mapped_column(JSON)
    percentage_match_score: Mapped[float | None] = mapped_column(Float)
    rank: Mapped[int | None] = mapped_column(Integer)
    newly_analysed: Mapped[bool] = mapped_column(Boolean, default=True)
    error: Mapped[str | None] = mapped_column(Text)
    attempts: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def is_complete(self) -> bool:
        return self.status == AnalysisStatus.COMPLETE.value

from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, JSON
from talentmatch.core.clock import new_id, utcnow
from talentmatch.db.base import Base

class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    organisation_id: Mapped[str] = mapped_column(String(64), index=True, default="")
    title: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    # free text handed to the LLM; treated as immutable once analyses exist
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="")
    # [{name, score, years_experience, mandatory}]
    expected_skills: Mapped[list] = mapped_column(JSON, default=list)
    # {product_score: .., ..., architecture_score: ..}
    expected_cultural_fit: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

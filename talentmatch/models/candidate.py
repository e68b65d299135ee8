from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Float, Text, DateTime, ForeignKey
from talentmatch.core.clock import new_id, utcnow
from talentmatch.db.base import Base

class Candidate(Base):
    __tablename__ = "candidates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    organisation_id: Mapped[str] = mapped_column(String(64), index=True, default="")
    resume_key: Mapped[str | None] = mapped_column(String(1024))  # object-storage key or URL
    summary: Mapped[str | None] = mapped_column(Text)
    designation: Mapped[str] = mapped_column(String(255), default="")
    current_location: Mapped[str] = mapped_column(String(255), default="")
    years_of_experience: Mapped[float | None] = mapped_column(Float)
    total_bookmarks: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    skills = relationship(
        "CandidateSkill",
        back_populates="candidate",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    cultural_fit = relationship(
        "CulturalFit",
        back_populates="candidate",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )


class CandidateSkill(Base):
    __tablename__ = "candidate_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    candidate_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        index=True,
        nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    score: Mapped[float] = mapped_column(Float, default=0.0)  # 0-5
    years_experience: Mapped[float] = mapped_column(Float, default=0.0)

    candidate = relationship("Candidate", back_populates="skills")


class CulturalFit(Base):
    __tablename__ = "cultural_fits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    candidate_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    product_score: Mapped[float] = mapped_column(Float, default=0.0)
    service_score: Mapped[float] = mapped_column(Float, default=0.0)
    startup_score: Mapped[float] = mapped_column(Float, default=0.0)
    mnc_score: Mapped[float] = mapped_column(Float, default=0.0)
    loyalty_score: Mapped[float] = mapped_column(Float, default=0.0)
    coding_score: Mapped[float] = mapped_column(Float, default=0.0)
    leadership_score: Mapped[float] = mapped_column(Float, default=0.0)
    architecture_score: Mapped[float] = mapped_column(Float, default=0.0)

    candidate = relationship("Candidate", back_populates="cultural_fit")

    def as_dict(self) -> dict[str, float]:
        from talentmatch.matching.scoring import CULTURAL_FIT_TRAITS
        return {t: float(getattr(self, t) or 0.0) for t in CULTURAL_FIT_TRAITS}

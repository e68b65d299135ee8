from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime
from talentmatch.core.clock import new_id, utcnow
from talentmatch.db.base import Base

class Member(Base):
    """A recruiter belonging to an organisation."""
    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    organisation_id: Mapped[str] = mapped_column(String(64), index=True, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def display_identity(self) -> str:
        if self.full_name:
            return f"{self.full_name} <{self.email}>"
        return self.email

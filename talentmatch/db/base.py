from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def import_models() -> None:
    """Import every model module so metadata (create_all / Alembic) sees all tables."""
    from talentmatch.models import analysis, bookmark, call, candidate, embedding, job, member  # noqa: F401

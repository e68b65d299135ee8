from sqlalchemy import Column, Integer, String, LargeBinary, UniqueConstraint
from talentmatch.db.base import Base  # must be the same Base used by the other models


class Embedding(Base):
    __tablename__ = "embeddings"
    __table_args__ = (
        UniqueConstraint("namespace", "ref_id", name="uq_embeddings_namespace_ref"),
    )
    id = Column(Integer, primary_key=True)
    namespace = Column(String(64), index=True, nullable=False)  # 'talent-pool' | 'job-pool'
    ref_id = Column(String(64), index=True, nullable=False)
    organisation_id = Column(String(64), index=True, default="")
    model = Column(String(255), nullable=False, default="")
    dim = Column(Integer, nullable=False)
    vector = Column(LargeBinary, nullable=False)  # np.float32 tobytes()

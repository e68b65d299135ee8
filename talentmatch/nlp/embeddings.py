# talentmatch/nlp/embeddings.py
import asyncio
import logging
from dataclasses import dataclass, field

import numpy as np
from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sentence_transformers import SentenceTransformer

from talentmatch.models.embedding import Embedding

logger = logging.getLogger(__name__)

# ---------- Model cache ----------
_models: dict[str, SentenceTransformer] = {}


def get_model(name: str) -> SentenceTransformer:
    if name not in _models:
        _models[name] = SentenceTransformer(name)
    return _models[name]


def embed_texts(texts: list[str], model_name: str) -> np.ndarray:
    """
    Returns np.float32 array of shape (N, D), L2-normalized.
    """
    M = get_model(model_name)
    X = M.encode(texts, normalize_embeddings=True)
    return np.asarray(X, dtype=np.float32)


class SentenceEncoder:
    """Async facade over the sentence-transformers model (encoding runs in a worker thread)."""

    def __init__(self, model_name: str):
        self.model_name = model_name

    async def encode(self, texts: list[str]) -> np.ndarray:
        return await asyncio.to_thread(embed_texts, texts, self.model_name)


# ---------- Profile text ----------
def candidate_text(candidate) -> str:
    skills = ", ".join(s.name for s in (candidate.skills or []))
    parts = [candidate.designation or "", candidate.summary or "", skills]
    return ". ".join(p for p in parts if p).strip() or candidate.name


def job_text(job) -> str:
    # stored jobs hold skills as dicts, request payloads as models
    skills = ", ".join(
        str(s.get("name", "") if isinstance(s, dict) else s.name) for s in (job.expected_skills or [])
    )
    parts = [job.title, job.description or "", skills]
    return ". ".join(p for p in parts if p).strip()


# ---------- Vector store ----------
@dataclass
class VectorMatch:
    id: str
    score: float
    metadata: dict = field(default_factory=dict)


def _to_vector(raw: bytes) -> np.ndarray:
    return np.frombuffer(raw, dtype=np.float32)


class VectorStore:
    """
    Namespaced dense-vector store on the embeddings table.

    Nearest-neighbour search is brute-force cosine over the namespace rows
    (filtered by organisation first); enough for a per-organisation pool.
    """

    def __init__(self, sessions: async_sessionmaker[AsyncSession], model_name: str = ""):
        self.sessions = sessions
        self.model_name = model_name

    async def upsert(self, namespace: str, ref_id: str, vec: np.ndarray, metadata: dict | None = None, s: AsyncSession | None = None) -> None:
        """
        Replace the row for (namespace, ref_id). Pass the caller session ``s``
        when writing inside a request transaction; otherwise a short-lived
        session is opened and committed here.
        """
        vec = np.asarray(vec, dtype=np.float32).reshape(-1)
        row = {
            "namespace": namespace,
            "ref_id": ref_id,
            "organisation_id": (metadata or {}).get("organisation_id", ""),
            "model": self.model_name,
            "dim": int(vec.shape[-1]),
            "vector": vec.tobytes(),
        }

        async def _do(sess: AsyncSession):
            await sess.execute(
                delete(Embedding).where(Embedding.namespace == namespace, Embedding.ref_id == ref_id)
            )
            await sess.execute(insert(Embedding).values(**row))

        if s is not None:
            await _do(s)
        else:
            async with self.sessions() as s2:
                await _do(s2)
                await s2.commit()
        logger.debug("[VECTOR] upserted %s/%s dim=%s", namespace, ref_id, row["dim"])

    async def fetch(self, namespace: str, ids: list[str]) -> dict[str, np.ndarray]:
        if not ids:
            return {}
        async with self.sessions() as s:
            rows = (await s.execute(
                select(Embedding.ref_id, Embedding.vector).where(
                    Embedding.namespace == namespace,
                    Embedding.ref_id.in_(ids),
                )
            )).all()
        return {ref_id: _to_vector(raw) for ref_id, raw in rows}

    async def query(self, namespace: str, vector: np.ndarray, top_k: int, filter: dict | None = None) -> list[VectorMatch]:
        stmt = select(Embedding.ref_id, Embedding.organisation_id, Embedding.vector).where(
            Embedding.namespace == namespace
        )
        org = (filter or {}).get("organisation_id")
        if org is not None:
            stmt = stmt.where(Embedding.organisation_id == org)
        async with self.sessions() as s:
            rows = (await s.execute(stmt)).all()
        if not rows or top_k <= 0:
            return []

        q = np.asarray(vector, dtype=np.float32).reshape(-1)
        qn = float(np.linalg.norm(q))
        matches = []
        for ref_id, org_id, raw in rows:
            v = _to_vector(raw)
            if v.shape != q.shape:
                logger.warning("[VECTOR] dim mismatch for %s/%s (%s != %s)", namespace, ref_id, v.shape, q.shape)
                continue
            vn = float(np.linalg.norm(v))
            score = float(np.dot(q, v) / (qn * vn)) if qn and vn else 0.0
            matches.append(VectorMatch(id=ref_id, score=score, metadata={"organisation_id": org_id}))

        matches.sort(key=lambda m: (-m.score, m.id))
        return matches[:top_k]

    async def count(self, namespace: str, filter: dict | None = None) -> int:
        stmt = select(func.count()).select_from(Embedding).where(Embedding.namespace == namespace)
        org = (filter or {}).get("organisation_id")
        if org is not None:
            stmt = stmt.where(Embedding.organisation_id == org)
        async with self.sessions() as s:
            return int((await s.execute(stmt)).scalar_one())

    async def delete(self, namespace: str, ids: list[str], s: AsyncSession | None = None) -> None:
        stmt = delete(Embedding).where(Embedding.namespace == namespace, Embedding.ref_id.in_(ids))
        if s is not None:
            await s.execute(stmt)
            return
        async with self.sessions() as s2:
            await s2.execute(stmt)
            await s2.commit()

# talentmatch/db/repositories.py
import logging

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from talentmatch.core.errors import (
    BookmarkNotFoundError,
    CandidateNotFoundError,
    IntegrityViolationError,
    JobNotFoundError,
)
from talentmatch.models.analysis import JobAnalysis
from talentmatch.models.bookmark import Bookmark
from talentmatch.models.call import ScheduledCall
from talentmatch.models.candidate import Candidate, CandidateSkill, CulturalFit
from talentmatch.models.job import Job
from talentmatch.models.member import Member
from talentmatch.nlp.embeddings import VectorStore

logger = logging.getLogger(__name__)


class CandidateRepository:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self.sessions = sessions

    async def get(self, candidate_id: str) -> Candidate | None:
        async with self.sessions() as s:
            return await s.get(Candidate, candidate_id)

    async def require(self, candidate_id: str) -> Candidate:
        candidate = await self.get(candidate_id)
        if candidate is None:
            raise CandidateNotFoundError(candidate_id)
        return candidate

    async def get_many(self, ids: list[str]) -> dict[str, Candidate]:
        if not ids:
            return {}
        async with self.sessions() as s:
            rows = (await s.execute(select(Candidate).where(Candidate.id.in_(ids)))).scalars().all()
        return {c.id: c for c in rows}

    async def list_for_org(self, organisation_id: str) -> list[Candidate]:
        async with self.sessions() as s:
            return list((await s.execute(
                select(Candidate).where(Candidate.organisation_id == organisation_id)
            )).scalars().all())

    async def create(self, data: dict, skills: list[dict], cultural_fit: dict | None, index=None) -> Candidate:
        """
        Insert the candidate. ``index(candidate, session)`` runs in the same
        transaction once the id is assigned, so a failed vector write leaves no row.
        """
        candidate = Candidate(**data)
        candidate.skills = [CandidateSkill(**sk) for sk in skills]
        if cultural_fit:
            candidate.cultural_fit = CulturalFit(**cultural_fit)
        async with self.sessions() as s:
            s.add(candidate)
            try:
                await s.flush()
                if index is not None:
                    await index(candidate, s)
                await s.commit()
            except IntegrityError:
                await s.rollback()
                raise IntegrityViolationError(f"Candidate with email {data.get('email')} already exists")
        return await self.require(candidate.id)

    async def delete_cascade(self, candidate_id: str, vectors: VectorStore, namespace: str) -> str | None:
        """
        Delete the candidate with its skills, cultural fit, bookmarks, analyses,
        scheduled calls and talent-pool vector in one transaction.
        Returns the resume key so the caller can remove the stored object.
        """
        async with self.sessions() as s:
            async with s.begin():
                candidate = await s.get(Candidate, candidate_id)
                if candidate is None:
                    raise CandidateNotFoundError(candidate_id)
                resume_key = candidate.resume_key
                await s.execute(delete(Bookmark).where(Bookmark.candidate_id == candidate_id))
                await s.execute(delete(JobAnalysis).where(JobAnalysis.candidate_id == candidate_id))
                await s.execute(delete(ScheduledCall).where(
                    ScheduledCall.candidate_id == candidate_id,
                    ScheduledCall.is_called.is_(False),
                ))
                await vectors.delete(namespace, [candidate_id], s=s)
                await s.delete(candidate)
        logger.info("[CANDIDATE] deleted %s", candidate_id)
        return resume_key


class JobRepository:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self.sessions = sessions

    async def get(self, job_id: str) -> Job | None:
        async with self.sessions() as s:
            return await s.get(Job, job_id)

    async def require(self, job_id: str) -> Job:
        job = await self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def list_for_org(self, organisation_id: str) -> list[Job]:
        async with self.sessions() as s:
            return list((await s.execute(
                select(Job).where(Job.organisation_id == organisation_id).order_by(Job.created_at.desc())
            )).scalars().all())

    async def create(self, data: dict, index=None) -> Job:
        job = Job(**data)
        async with self.sessions() as s:
            s.add(job)
            await s.flush()
            if index is not None:
                await index(job, s)
            await s.commit()
        return job

    async def delete_cascade(self, job_id: str, vectors: VectorStore, namespace: str) -> None:
        async with self.sessions() as s:
            async with s.begin():
                job = await s.get(Job, job_id)
                if job is None:
                    raise JobNotFoundError(job_id)
                await s.execute(delete(Bookmark).where(Bookmark.job_id == job_id))
                await s.execute(delete(JobAnalysis).where(JobAnalysis.job_id == job_id))
                await s.execute(delete(ScheduledCall).where(
                    ScheduledCall.job_id == job_id,
                    ScheduledCall.is_called.is_(False),
                ))
                await vectors.delete(namespace, [job_id], s=s)
                await s.delete(job)
        logger.info("[JOB] deleted %s", job_id)


class MemberRepository:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self.sessions = sessions

    async def get(self, member_id: str) -> Member | None:
        async with self.sessions() as s:
            return await s.get(Member, member_id)

    async def get_by_email(self, email: str) -> Member | None:
        async with self.sessions() as s:
            return (await s.execute(select(Member).where(Member.email == email))).scalars().first()

    async def create(self, email: str, full_name: str | None, organisation_id: str, hashed_password: str) -> Member:
        member = Member(email=email, full_name=full_name, organisation_id=organisation_id, hashed_password=hashed_password)
        async with self.sessions() as s:
            s.add(member)
            try:
                await s.commit()
            except IntegrityError:
                await s.rollback()
                raise IntegrityViolationError(f"Member {email} already exists")
        return member

    async def display_identity(self, member_id: str) -> str:
        """Falls back to the raw id when the member cannot be resolved."""
        try:
            member = await self.get(member_id)
        except Exception:  # noqa: BLE001
            logger.warning("[MEMBERS] identity lookup failed for %s", member_id, exc_info=True)
            return member_id
        return member.display_identity if member else member_id


class BookmarkRepository:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self.sessions = sessions

    async def list_for_job(self, job_id: str) -> list[Bookmark]:
        async with self.sessions() as s:
            return list((await s.execute(
                select(Bookmark).where(Bookmark.job_id == job_id).order_by(Bookmark.created_at)
            )).scalars().all())

    async def list_for_member(self, job_id: str, member_id: str) -> list[Bookmark]:
        async with self.sessions() as s:
            return list((await s.execute(
                select(Bookmark).where(Bookmark.job_id == job_id, Bookmark.member_id == member_id)
                .order_by(Bookmark.created_at)
            )).scalars().all())

    async def create(self, job_id: str, candidate_id: str, member_id: str) -> Bookmark:
        bookmark = Bookmark(job_id=job_id, candidate_id=candidate_id, member_id=member_id)
        async with self.sessions() as s:
            try:
                async with s.begin():
                    s.add(bookmark)
                    await s.flush()
                    await s.execute(
                        update(Candidate)
                        .where(Candidate.id == candidate_id)
                        .values(total_bookmarks=Candidate.total_bookmarks + 1)
                    )
            except IntegrityError:
                raise IntegrityViolationError("Candidate already bookmarked for this job")
        return bookmark

    async def delete(self, bookmark_id: str, member_id: str) -> None:
        async with self.sessions() as s:
            async with s.begin():
                bookmark = await s.get(Bookmark, bookmark_id)
                if bookmark is None or bookmark.member_id != member_id:
                    raise BookmarkNotFoundError(f"Bookmark {bookmark_id} not found")
                await s.execute(
                    update(Candidate)
                    .where(Candidate.id == bookmark.candidate_id)
                    .values(total_bookmarks=case((Candidate.total_bookmarks > 0, Candidate.total_bookmarks - 1), else_=0))
                )
                await s.delete(bookmark)

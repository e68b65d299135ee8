# talentmatch/db/analysis_store.py
"""
Access pattern for analysis records.

Every method opens its own short session, so concurrent analyses for
different candidates never share one. Atomicity comes from the database:

* ``claim`` relies on the unique (job_id, candidate_id) index; a violation
  means another worker owns the pair.
* ``reclaim`` is a compare-and-swap UPDATE on (status, updated_at) that
  bumps ``attempts``; ``complete`` and ``mark_failed`` only write while
  ``attempts`` still matches the claim, so a superseded worker is a no-op.
"""
import logging
from datetime import timedelta

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from talentmatch.core.clock import utcnow
from talentmatch.models.analysis import AnalysisStatus, JobAnalysis

logger = logging.getLogger(__name__)


class AnalysisStore:
    def __init__(self, sessions: async_sessionmaker[AsyncSession], clock=utcnow):
        self.sessions = sessions
        self.clock = clock

    # ---------- reads ----------
    async def get(self, job_id: str, candidate_id: str) -> JobAnalysis | None:
        async with self.sessions() as s:
            return (await s.execute(
                select(JobAnalysis).where(
                    JobAnalysis.job_id == job_id,
                    JobAnalysis.candidate_id == candidate_id,
                )
            )).scalars().first()

    async def get_by_id(self, record_id: str) -> JobAnalysis | None:
        async with self.sessions() as s:
            return await s.get(JobAnalysis, record_id)

    async def list_for_job(self, job_id: str, status: AnalysisStatus | None = None) -> list[JobAnalysis]:
        stmt = select(JobAnalysis).where(JobAnalysis.job_id == job_id)
        if status is not None:
            stmt = stmt.where(JobAnalysis.status == status.value)
        async with self.sessions() as s:
            return list((await s.execute(stmt)).scalars().all())

    async def count_complete(self, job_id: str) -> int:
        async with self.sessions() as s:
            return int((await s.execute(
                select(func.count()).select_from(JobAnalysis).where(
                    JobAnalysis.job_id == job_id,
                    JobAnalysis.status == AnalysisStatus.COMPLETE.value,
                )
            )).scalar_one())

    async def count_higher(self, job_id: str, score: float, exclude_id: str | None = None) -> int:
        """Complete records of the job scoring strictly above ``score``."""
        stmt = select(func.count()).select_from(JobAnalysis).where(
            JobAnalysis.job_id == job_id,
            JobAnalysis.status == AnalysisStatus.COMPLETE.value,
            JobAnalysis.percentage_match_score > score,
        )
        if exclude_id is not None:
            stmt = stmt.where(JobAnalysis.id != exclude_id)
        async with self.sessions() as s:
            return int((await s.execute(stmt)).scalar_one())

    def is_stale(self, record: JobAnalysis, stale_after_seconds: float) -> bool:
        if record.status != AnalysisStatus.PENDING.value:
            return False
        return record.updated_at <= self.clock() - timedelta(seconds=stale_after_seconds)

    # ---------- writes ----------
    async def claim(self, job_id: str, candidate_id: str) -> tuple[JobAnalysis, bool]:
        """
        Insert a pending placeholder for the pair.

        Returns ``(record, True)`` when this caller inserted it, or
        ``(existing, False)`` when another worker got there first.
        """
        now = self.clock()
        record = JobAnalysis(
            job_id=job_id,
            candidate_id=candidate_id,
            status=AnalysisStatus.PENDING.value,
            newly_analysed=True,
            attempts=1,
            created_at=now,
            updated_at=now,
        )
        async with self.sessions() as s:
            s.add(record)
            try:
                await s.commit()
                return record, True
            except IntegrityError:
                await s.rollback()

        logger.info("[ANALYSIS] pair already claimed job=%s candidate=%s", job_id, candidate_id)
        existing = await self.get(job_id, candidate_id)
        if existing is None:
            # the other row vanished between our insert and the re-read (cascade delete)
            raise RuntimeError(f"analysis for job={job_id} candidate={candidate_id} disappeared during claim")
        return existing, False

    async def reclaim(self, record: JobAnalysis) -> JobAnalysis | None:
        """Move a failed or stale-pending record back to pending; None if someone else did."""
        now = self.clock()
        async with self.sessions() as s:
            result = await s.execute(
                update(JobAnalysis)
                .where(
                    JobAnalysis.id == record.id,
                    JobAnalysis.status == record.status,
                    JobAnalysis.updated_at == record.updated_at,
                )
                .values(
                    status=AnalysisStatus.PENDING.value,
                    data=None,
                    error=None,
                    newly_analysed=True,
                    attempts=JobAnalysis.attempts + 1,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            await s.commit()
            if result.rowcount != 1:
                return None
        return await self.get_by_id(record.id)

    async def complete(self, record_id: str, attempt: int, data: dict, score: float, rank: int) -> bool:
        """
        Store the finished report. ``attempt`` is the value returned by the
        claim; False means the record was reclaimed since and nothing was written.
        """
        async with self.sessions() as s:
            result = await s.execute(
                update(JobAnalysis)
                .where(
                    JobAnalysis.id == record_id,
                    JobAnalysis.attempts == attempt,
                    JobAnalysis.status == AnalysisStatus.PENDING.value,
                )
                .values(
                    status=AnalysisStatus.COMPLETE.value,
                    data=data,
                    percentage_match_score=score,
                    rank=rank,
                    error=None,
                    updated_at=self.clock(),
                )
                .execution_options(synchronize_session=False)
            )
            await s.commit()
            return result.rowcount == 1

    async def mark_failed(self, record_id: str, attempt: int, error: str) -> bool:
        async with self.sessions() as s:
            result = await s.execute(
                update(JobAnalysis)
                .where(
                    JobAnalysis.id == record_id,
                    JobAnalysis.attempts == attempt,
                    JobAnalysis.status == AnalysisStatus.PENDING.value,
                )
                .values(
                    status=AnalysisStatus.FAILED.value,
                    error=error[:2000],
                    updated_at=self.clock(),
                )
                .execution_options(synchronize_session=False)
            )
            await s.commit()
            return result.rowcount == 1

    async def acknowledge(self, job_id: str, candidate_ids: list[str]) -> int:
        """Flip ``newly_analysed`` off for the given candidates of the job."""
        if not candidate_ids:
            return 0
        async with self.sessions() as s:
            result = await s.execute(
                update(JobAnalysis)
                .where(
                    JobAnalysis.job_id == job_id,
                    JobAnalysis.candidate_id.in_(candidate_ids),
                    JobAnalysis.newly_analysed.is_(True),
                )
                .values(newly_analysed=False)
                .execution_options(synchronize_session=False)
            )
            await s.commit()
            return int(result.rowcount or 0)


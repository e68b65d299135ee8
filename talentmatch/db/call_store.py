# talentmatch/db/call_store.py
import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from talentmatch.core.errors import ScheduledCallNotFoundError
from talentmatch.models.call import CallDetail, ScheduledCall

logger = logging.getLogger(__name__)


class CallStore:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self.sessions = sessions

    async def schedule(self, **fields) -> ScheduledCall:
        call = ScheduledCall(is_called=False, **fields)
        async with self.sessions() as s:
            s.add(call)
            await s.commit()
        return call

    async def get(self, call_id: str) -> ScheduledCall | None:
        async with self.sessions() as s:
            return await s.get(ScheduledCall, call_id)

    async def list_pending(self, job_id: str, candidate_id: str) -> list[ScheduledCall]:
        async with self.sessions() as s:
            return list((await s.execute(
                select(ScheduledCall).where(
                    ScheduledCall.job_id == job_id,
                    ScheduledCall.candidate_id == candidate_id,
                    ScheduledCall.is_called.is_(False),
                ).order_by(ScheduledCall.start_time)
            )).scalars().all())

    async def delete(self, scheduled_id: str) -> None:
        """Only calls that have not been claimed can be removed."""
        async with self.sessions() as s:
            result = await s.execute(
                delete(ScheduledCall).where(
                    ScheduledCall.id == scheduled_id,
                    ScheduledCall.is_called.is_(False),
                )
            )
            await s.commit()
        if result.rowcount != 1:
            raise ScheduledCallNotFoundError(f"Scheduled call {scheduled_id} not found or already claimed")

    # ---------- admission ----------
    async def count_in_flight(self, now: datetime) -> int:
        async with self.sessions() as s:
            return int((await s.execute(
                select(func.count()).select_from(ScheduledCall).where(
                    ScheduledCall.is_called.is_(True),
                    ScheduledCall.end_time > now,
                )
            )).scalar_one())

    async def claim_next_due(self, now: datetime) -> ScheduledCall | None:
        """
        Atomically move the oldest due pending call to CLAIMED.

        The UPDATE is conditional on ``is_called = false``; if another tick won
        the row first, the next candidate is tried.
        """
        async with self.sessions() as s:
            while True:
                call_id = (await s.execute(
                    select(ScheduledCall.id).where(
                        ScheduledCall.is_called.is_(False),
                        ScheduledCall.start_time <= now,
                    ).order_by(ScheduledCall.start_time, ScheduledCall.id).limit(1)
                )).scalar_one_or_none()
                if call_id is None:
                    return None
                result = await s.execute(
                    update(ScheduledCall)
                    .where(ScheduledCall.id == call_id, ScheduledCall.is_called.is_(False))
                    .values(is_called=True, claimed_at=now)
                    .execution_options(synchronize_session=False)
                )
                await s.commit()
                if result.rowcount == 1:
                    return await s.get(ScheduledCall, call_id, populate_existing=True)
                logger.debug("[CALLS] lost claim race for %s", call_id)

    async def set_dispatched(self, scheduled: ScheduledCall, call_id: str, payload: dict) -> CallDetail:
        detail = CallDetail(
            job_id=scheduled.job_id,
            candidate_id=scheduled.candidate_id,
            organisation_id=scheduled.organisation_id,
            assistant_id=scheduled.assistant_id,
            call_id=call_id,
            recruiter_email=scheduled.recruiter_email,
            payload=payload,
        )
        async with self.sessions() as s:
            await s.execute(
                update(ScheduledCall)
                .where(ScheduledCall.id == scheduled.id)
                .values(call_id=call_id)
                .execution_options(synchronize_session=False)
            )
            s.add(detail)
            await s.commit()
        return detail

    async def orphaned(self, now: datetime, older_than_minutes: int) -> list[ScheduledCall]:
        """Claimed calls that never got a call id."""
        cutoff = now - timedelta(minutes=older_than_minutes)
        async with self.sessions() as s:
            return list((await s.execute(
                select(ScheduledCall).where(
                    ScheduledCall.is_called.is_(True),
                    ScheduledCall.call_id.is_(None),
                    ScheduledCall.claimed_at <= cutoff,
                )
            )).scalars().all())

    async def count_overlapping(self, start: datetime, end: datetime) -> int:
        async with self.sessions() as s:
            return int((await s.execute(
                select(func.count()).select_from(ScheduledCall).where(
                    ScheduledCall.start_time < end,
                    ScheduledCall.end_time > start,
                )
            )).scalar_one())

    async def next_available_slot(self, start: datetime, duration: timedelta, limit: int, max_steps: int = 24 * 6 * 7) -> datetime:
        """First slot from ``start`` (stepping by ``duration``) overlapping fewer than ``limit`` calls."""
        slot = start
        for _ in range(max_steps):
            if await self.count_overlapping(slot, slot + duration) < limit:
                return slot
            slot += duration
        return slot

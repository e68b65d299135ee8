# talentmatch/calls/scheduler.py
"""
Admission control for outbound calls.

Each scheduled call moves PENDING -> CLAIMED -> DISPATCHED. At most
``max_concurrent`` calls may be CLAIMED with an end time in the future; a
tick claims due calls (oldest start first) until that bound is reached or
nothing is due. The claim itself is a conditional UPDATE in ``CallStore``,
so overlapping ticks or processes can never claim the same row twice.
A dispatch failure is logged and the claim is kept.
"""
import asyncio
import logging

from talentmatch.core.clock import utcnow
from talentmatch.db.call_store import CallStore
from talentmatch.models.call import ScheduledCall

logger = logging.getLogger(__name__)


class CallAdmissionScheduler:
    def __init__(
        self,
        store: CallStore,
        dialer,
        clock=utcnow,
        max_concurrent: int = 5,
        tick_seconds: float = 60.0,
        orphan_minutes: int = 5,
    ):
        self.store = store
        self.dialer = dialer
        self.clock = clock
        self.max_concurrent = max_concurrent
        self.tick_seconds = tick_seconds
        self.orphan_minutes = orphan_minutes
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    async def tick(self) -> int:
        """One admission pass; returns how many calls were claimed."""
        if self._lock.locked():
            logger.info("[CALLS] previous tick still running, skipping")
            return 0
        async with self._lock:
            claimed = 0
            while True:
                now = self.clock()
                in_flight = await self.store.count_in_flight(now)
                if in_flight >= self.max_concurrent:
                    logger.info("[CALLS] %s calls in flight, admission limit reached", in_flight)
                    break
                call = await self.store.claim_next_due(now)
                if call is None:
                    break
                claimed += 1
                await self._dispatch(call)
            await self._report_orphans()
            return claimed

    async def _dispatch(self, call: ScheduledCall) -> None:
        try:
            result = await self.dialer.dispatch(
                call.assistant_id,
                call.phone_number,
                metadata={"jobId": call.job_id, "candidateId": call.candidate_id, "scheduledCallId": call.id},
            )
            await self.store.set_dispatched(call, result["id"], result)
        except Exception as e:  # noqa: BLE001
            logger.error("[CALLS] dispatch failed scheduled=%s candidate=%s: %s", call.id, call.candidate_id, e)
            return
        logger.info("[CALLS] dispatched scheduled=%s call_id=%s", call.id, result["id"])

    async def _report_orphans(self) -> None:
        for call in await self.store.orphaned(self.clock(), self.orphan_minutes):
            logger.warning(
                "[CALLS] orphaned claim scheduled=%s claimed_at=%s: claimed but never dispatched",
                call.id, call.claimed_at,
            )

    # ---------- background loop ----------
    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:  # noqa: BLE001
                logger.exception("[CALLS] tick failed")
            await asyncio.sleep(self.tick_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="call-admission-scheduler")
            logger.info("[CALLS] scheduler started (every %ss, limit %s)", self.tick_seconds, self.max_concurrent)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[CALLS] scheduler stopped")

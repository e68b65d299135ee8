"""
Test cases for call admission and the call store
"""
import asyncio
import logging
from datetime import timedelta

import pytest
from sqlalchemy import select

from conftest import FakeClock
from talentmatch.core.errors import ScheduledCallNotFoundError
from talentmatch.models.call import CallDetail


async def schedule_due(container, clock, n, duration=10):
    """``n`` calls that started 8, 7, 6... minutes ago, oldest first."""
    calls = []
    for i in range(n):
        start = clock.now - timedelta(minutes=8 - i)
        calls.append(await container.calls.schedule(
            start_time=start,
            end_time=start + timedelta(minutes=duration),
            job_id="job-1",
            candidate_id=f"cand-{i}",
            assistant_id="assistant-1",
            phone_number="+14155550100",
            organisation_id="org-1",
        ))
    return calls


class TestAdmission:
    def test_bound_holds_across_ticks(self, services):
        """K=5 and 8 due: 5 now, none while they run, the last 3 once they end"""
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock, MAX_CONCURRENT_CALLS=5) as (c, fakes):
                calls = await schedule_due(c, clock, 8)

                assert await c.scheduler.tick() == 5
                assert await c.calls.count_in_flight(clock.now) == 5
                claimed = [await c.calls.get(x.id) for x in calls]
                assert [x.is_called for x in claimed] == [True] * 5 + [False] * 3
                assert all(x.call_id for x in claimed[:5])

                assert await c.scheduler.tick() == 0

                clock.advance(minutes=11)
                assert await c.scheduler.tick() == 3
                assert len(fakes.dialer.dispatched) == 8
                assert all([(await c.calls.get(x.id)).is_called for x in calls])

        asyncio.run(scenario())

    def test_future_calls_wait(self, services):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, fakes):
                await c.calls.schedule(
                    start_time=clock.now + timedelta(minutes=30),
                    end_time=clock.now + timedelta(minutes=40),
                    job_id="job-1", candidate_id="cand-1",
                    assistant_id="assistant-1", phone_number="+14155550100",
                )
                assert await c.scheduler.tick() == 0
                clock.advance(minutes=30)
                assert await c.scheduler.tick() == 1
                assistant, phone, metadata = fakes.dialer.dispatched[0]
                assert (assistant, phone) == ("assistant-1", "+14155550100")
                assert metadata["candidateId"] == "cand-1"

        asyncio.run(scenario())

    def test_dispatch_records_call_detail(self, services):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, _):
                (call,) = await schedule_due(c, clock, 1)
                await c.scheduler.tick()
                async with c.sessions() as s:
                    details = (await s.execute(select(CallDetail))).scalars().all()
                assert len(details) == 1
                assert details[0].call_id == (await c.calls.get(call.id)).call_id == "call-1"
                assert details[0].payload["status"] == "queued"

        asyncio.run(scenario())

    def test_overlapping_tick_is_skipped(self, services):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, fakes):
                await schedule_due(c, clock, 2)
                async with c.scheduler._lock:
                    assert await c.scheduler.tick() == 0
                assert fakes.dialer.dispatched == []
                assert await c.scheduler.tick() == 2

        asyncio.run(scenario())

    def test_concurrent_claims_never_share_a_row(self, services):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, _):
                await schedule_due(c, clock, 3)
                got = await asyncio.gather(*(c.calls.claim_next_due(clock.now) for _ in range(5)))
                ids = [g.id for g in got if g is not None]
                assert len(ids) == 3
                assert len(set(ids)) == 3

        asyncio.run(scenario())


class TestDispatchFailure:
    def test_claim_is_kept_and_orphan_reported(self, services, caplog):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, fakes):
                fakes.dialer.fail = True
                (call,) = await schedule_due(c, clock, 1)

                assert await c.scheduler.tick() == 1
                stored = await c.calls.get(call.id)
                assert stored.is_called is True
                assert stored.call_id is None

                fakes.dialer.fail = False
                assert await c.scheduler.tick() == 0

                clock.advance(minutes=6)
                with caplog.at_level(logging.WARNING, logger="talentmatch.calls.scheduler"):
                    await c.scheduler.tick()
                assert any("orphaned claim" in r.getMessage() and call.id in r.getMessage() for r in caplog.records)

        asyncio.run(scenario())


class TestLoop:
    def test_start_runs_a_tick_and_stop_cancels(self, services):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, fakes):
                await schedule_due(c, clock, 1)
                c.scheduler.start()
                for _ in range(100):
                    if fakes.dialer.dispatched:
                        break
                    await asyncio.sleep(0.01)
                await c.scheduler.stop()
                assert len(fakes.dialer.dispatched) == 1
                assert c.scheduler._task is None

        asyncio.run(scenario())


class TestCallStore:
    def test_next_available_slot(self, services):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, _):
                start = clock.now
                ten = timedelta(minutes=10)
                for i in range(2):
                    await c.calls.schedule(
                        start_time=start, end_time=start + ten, job_id="job-1",
                        candidate_id=f"cand-{i}", assistant_id="a", phone_number="+14155550100",
                    )
                assert await c.calls.next_available_slot(start, ten, limit=3) == start
                assert await c.calls.next_available_slot(start, ten, limit=2) == start + ten

        asyncio.run(scenario())

    def test_delete_only_pending(self, services):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, _):
                first, second = await schedule_due(c, clock, 2)
                await c.calls.delete(second.id)
                assert await c.calls.get(second.id) is None

                await c.calls.claim_next_due(clock.now)
                with pytest.raises(ScheduledCallNotFoundError):
                    await c.calls.delete(first.id)
                with pytest.raises(ScheduledCallNotFoundError):
                    await c.calls.delete("missing")

        asyncio.run(scenario())

    def test_list_pending(self, services):
        async def scenario():
            clock = FakeClock()
            async with services(clock=clock) as (c, _):
                calls = await schedule_due(c, clock, 2)
                pending = await c.calls.list_pending("job-1", "cand-1")
                assert [p.id for p in pending] == [calls[1].id]

        asyncio.run(scenario())

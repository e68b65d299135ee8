# talentmatch/api/call_routes.py
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from talentmatch.api.deps import candidate_for_member, get_container, job_for_member, to_naive_utc
from talentmatch.auth.jwt import get_current_member
from talentmatch.calls.phone import normalize_phone
from talentmatch.container import Container
from talentmatch.core.clock import utcnow
from talentmatch.core.errors import ScheduledCallNotFoundError
from talentmatch.models.member import Member
from talentmatch.schemas.call import NextSlotOut, ScheduleCallIn, ScheduledCallOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calls", tags=["calls"])


@router.post("", response_model=ScheduledCallOut, status_code=201)
async def schedule_call(
    payload: ScheduleCallIn,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    """Queue an outbound screening call; the admission scheduler places it when due."""
    phone = normalize_phone(payload.phone_number)
    await job_for_member(container, payload.job_id, member)
    await candidate_for_member(container, payload.candidate_id, member)

    start = to_naive_utc(payload.start_time)
    call = await container.calls.schedule(
        start_time=start,
        end_time=start + timedelta(minutes=container.settings.CALL_DURATION_MINUTES),
        job_id=payload.job_id,
        candidate_id=payload.candidate_id,
        assistant_id=payload.assistant_id,
        phone_number=phone,
        organisation_id=member.organisation_id,
        recruiter_email=member.email,
    )
    logger.info("[CALLS] scheduled %s for candidate=%s at %s", call.id, call.candidate_id, call.start_time)
    return call


@router.get("", response_model=List[ScheduledCallOut])
async def pending_calls(
    job_id: str = Query(...),
    candidate_id: str = Query(...),
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    await job_for_member(container, job_id, member)
    return await container.calls.list_pending(job_id, candidate_id)


@router.get("/next-slot", response_model=NextSlotOut)
async def next_slot(
    start_time: Optional[datetime] = None,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    """Earliest slot at or after ``start_time`` with spare calling capacity."""
    duration = timedelta(minutes=container.settings.CALL_DURATION_MINUTES)
    start = to_naive_utc(start_time) if start_time else utcnow()
    slot = await container.calls.next_available_slot(start, duration, container.settings.MAX_CONCURRENT_CALLS)
    return NextSlotOut(start_time=slot, end_time=slot + duration)


@router.delete("/{scheduled_id}", status_code=204)
async def delete_call(
    scheduled_id: str,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    call = await container.calls.get(scheduled_id)
    if call is None or call.organisation_id != member.organisation_id:
        raise ScheduledCallNotFoundError(f"Scheduled call {scheduled_id} not found")
    await container.calls.delete(scheduled_id)
    return Response(status_code=204)

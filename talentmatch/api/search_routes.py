# talentmatch/api/search_routes.py
from fastapi import APIRouter, BackgroundTasks, Depends, Query

from talentmatch.api.deps import get_container, job_for_member
from talentmatch.auth.jwt import get_current_member
from talentmatch.container import Container
from talentmatch.models.member import Member
from talentmatch.schemas.analysis import AcknowledgeIn
from talentmatch.schemas.search import RankedPage

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/{job_id}", response_model=RankedPage)
async def ranked_candidates(
    job_id: str,
    background: BackgroundTasks,
    start: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=50),
    only_bookmarked: bool = False,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    """
    Best-matching candidates for a job, analysing more on demand.
    Newly analysed entries are acknowledged once the response has gone out.
    """
    await job_for_member(container, job_id, member)
    page = await container.orchestrator.get_ranked_page(
        job_id,
        member.id,
        start=start,
        limit=limit,
        only_bookmarked=only_bookmarked,
    )
    fresh = [c.candidate_id for c in page.candidates if c.newly_analysed]
    if fresh:
        background.add_task(container.orchestrator.acknowledge, job_id, fresh)
    return page


@router.post("/{job_id}/acknowledge")
async def acknowledge(
    job_id: str,
    payload: AcknowledgeIn,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    await job_for_member(container, job_id, member)
    n = await container.analyses.acknowledge(job_id, payload.candidate_ids)
    return {"acknowledged": n}

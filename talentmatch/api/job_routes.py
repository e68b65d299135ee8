# talentmatch/api/job_routes.py
import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response

from talentmatch.api.deps import get_container, job_for_member
from talentmatch.auth.jwt import get_current_member
from talentmatch.container import Container
from talentmatch.models.member import Member
from talentmatch.nlp.embeddings import job_text
from talentmatch.schemas.job import JobIn, JobOut
from talentmatch.schemas.search import LocalMatch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


# ---------------------------
# Helper functions
# ---------------------------

async def _warm_up(container: Container, job_id: str) -> None:
    try:
        await container.orchestrator.warm_up(job_id, container.settings.WARMUP_CANDIDATES)
    except Exception:  # noqa: BLE001
        logger.exception("[JOB] warm-up failed job=%s", job_id)


# ---------------------------
# Routes
# ---------------------------

@router.post("", response_model=JobOut, status_code=201)
async def create_job(
    payload: JobIn,
    background: BackgroundTasks,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    """Create a job, cache its embedding and pre-analyse the closest candidates."""
    vec = (await container.encoder.encode([job_text(payload)]))[0]

    async def index(job, s):
        await container.vectors.upsert(
            container.settings.JOB_NAMESPACE,
            job.id,
            vec,
            {"organisation_id": job.organisation_id},
            s=s,
        )

    job = await container.jobs.create({
        "organisation_id": member.organisation_id,
        "title": payload.title,
        "description": payload.description,
        "location": payload.location or "",
        "expected_skills": [s.model_dump() for s in payload.expected_skills],
        "expected_cultural_fit": payload.expected_cultural_fit.model_dump() if payload.expected_cultural_fit else {},
    }, index=index)
    if container.settings.WARMUP_CANDIDATES > 0:
        background.add_task(_warm_up, container, job.id)
    logger.info("[JOB] created %s org=%s", job.id, job.organisation_id)
    return job


@router.get("", response_model=List[JobOut])
async def list_jobs(member: Member = Depends(get_current_member), container: Container = Depends(get_container)):
    return await container.jobs.list_for_org(member.organisation_id)


@router.get("/{job_id}", response_model=JobOut)
async def get_job(job_id: str, member: Member = Depends(get_current_member), container: Container = Depends(get_container)):
    return await job_for_member(container, job_id, member)


@router.delete("/{job_id}", status_code=204)
async def delete_job(job_id: str, member: Member = Depends(get_current_member), container: Container = Depends(get_container)):
    await job_for_member(container, job_id, member)
    await container.jobs.delete_cascade(job_id, container.vectors, container.settings.JOB_NAMESPACE)
    container.orchestrator.job_cache.invalidate(job_id)
    container.orchestrator.embedding_cache.invalidate(job_id)
    return Response(status_code=204)


@router.get("/{job_id}/local-matches", response_model=List[LocalMatch])
async def local_matches(
    job_id: str,
    limit: Optional[int] = Query(None, ge=1, le=500),
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    """Rank the organisation's candidates from stored profiles only (no LLM)."""
    await job_for_member(container, job_id, member)
    return await container.orchestrator.get_local_ranking(job_id, limit=limit)

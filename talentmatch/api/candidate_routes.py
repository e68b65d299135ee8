# talentmatch/api/candidate_routes.py
import logging

from fastapi import APIRouter, Depends, Response

from talentmatch.api.deps import candidate_for_member, get_container, job_for_member
from talentmatch.auth.jwt import get_current_member
from talentmatch.container import Container
from talentmatch.models.member import Member
from talentmatch.nlp.embeddings import candidate_text
from talentmatch.schemas.candidate import CandidateForJobOut, CandidateIn, CandidateOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/candidates", tags=["candidates"])


@router.post("", response_model=CandidateOut, status_code=201)
async def create_candidate(
    payload: CandidateIn,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    """Store a candidate profile and index it in the talent pool."""
    data = payload.model_dump(exclude={"skills", "cultural_fit"})
    data["organisation_id"] = member.organisation_id
    vec = (await container.encoder.encode([candidate_text(payload)]))[0]

    async def index(candidate, s):
        await container.vectors.upsert(
            container.settings.TALENT_NAMESPACE,
            candidate.id,
            vec,
            {"organisation_id": candidate.organisation_id},
            s=s,
        )

    candidate = await container.candidates.create(
        data,
        skills=[s.model_dump() for s in payload.skills],
        cultural_fit=payload.cultural_fit.model_dump() if payload.cultural_fit else None,
        index=index,
    )
    logger.info("[CANDIDATE] created %s org=%s", candidate.id, candidate.organisation_id)
    return candidate


@router.get("/{candidate_id}", response_model=CandidateOut)
async def get_candidate(
    candidate_id: str,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    return await candidate_for_member(container, candidate_id, member)


@router.get("/{candidate_id}/jobs/{job_id}", response_model=CandidateForJobOut)
async def get_candidate_for_job(
    candidate_id: str,
    job_id: str,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    """Candidate profile with its match report for the job (analysed on first view)."""
    job = await job_for_member(container, job_id, member)
    candidate = await candidate_for_member(container, candidate_id, member)
    record = await container.analyzer.analyze(job.id, candidate.id, job=job)
    return CandidateForJobOut(
        candidate=CandidateOut.model_validate(candidate),
        analysis=record.data,
        status=record.status,
        percentage_match_score=record.percentage_match_score,
        rank=record.rank,
    )


@router.delete("/{candidate_id}", status_code=204)
async def delete_candidate(
    candidate_id: str,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    await candidate_for_member(container, candidate_id, member)
    resume_key = await container.candidates.delete_cascade(
        candidate_id, container.vectors, container.settings.TALENT_NAMESPACE
    )
    await container.resolver.delete(resume_key)
    return Response(status_code=204)

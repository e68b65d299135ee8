# talentmatch/api/deps.py
from datetime import datetime, timezone

from fastapi import Request

from talentmatch.container import Container
from talentmatch.core.errors import CandidateNotFoundError, JobNotFoundError
from talentmatch.models.candidate import Candidate
from talentmatch.models.job import Job
from talentmatch.models.member import Member


def get_container(request: Request) -> Container:
    return request.app.state.container


# ---------- Helper Functions ----------
async def job_for_member(container: Container, job_id: str, member: Member) -> Job:
    """Jobs of other organisations are reported as missing."""
    job = await container.jobs.get(job_id)
    if job is None or job.organisation_id != member.organisation_id:
        raise JobNotFoundError(job_id)
    return job


async def candidate_for_member(container: Container, candidate_id: str, member: Member) -> Candidate:
    candidate = await container.candidates.get(candidate_id)
    if candidate is None or candidate.organisation_id != member.organisation_id:
        raise CandidateNotFoundError(candidate_id)
    return candidate


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt

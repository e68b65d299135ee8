# talentmatch/api/bookmark_routes.py
from typing import List

from fastapi import APIRouter, Depends, Query, Response

from talentmatch.api.deps import candidate_for_member, get_container, job_for_member
from talentmatch.auth.jwt import get_current_member
from talentmatch.container import Container
from talentmatch.models.member import Member
from talentmatch.schemas.bookmark import BookmarkIn, BookmarkOut

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.post("", response_model=BookmarkOut, status_code=201)
async def create_bookmark(
    payload: BookmarkIn,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    await job_for_member(container, payload.job_id, member)
    await candidate_for_member(container, payload.candidate_id, member)
    return await container.bookmarks.create(payload.job_id, payload.candidate_id, member.id)


@router.get("", response_model=List[BookmarkOut])
async def my_bookmarks(
    job_id: str = Query(...),
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    await job_for_member(container, job_id, member)
    return await container.bookmarks.list_for_member(job_id, member.id)


@router.delete("/{bookmark_id}", status_code=204)
async def delete_bookmark(
    bookmark_id: str,
    member: Member = Depends(get_current_member),
    container: Container = Depends(get_container),
):
    await container.bookmarks.delete(bookmark_id, member.id)
    return Response(status_code=204)

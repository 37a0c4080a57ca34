from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms.api.v2.dependencies import get_current_user, get_db
from lms.core.errors import DomainError
from lms.models.user.user_model import User
from lms.schemas.community import discussion_schema
from lms.services import discussion_service

router = APIRouter()


@router.get("/courses/{course_id}/discussions", response_model=List[discussion_schema.DiscussionOut])
def list_discussions(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return discussion_service.list_discussions(db, current_user, course_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post(
    "/courses/{course_id}/discussions",
    response_model=discussion_schema.DiscussionOut,
    status_code=status.HTTP_201_CREATED,
)
def create_discussion(
    course_id: int,
    payload: discussion_schema.DiscussionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return discussion_service.create_discussion(db, current_user, course_id, payload.title, payload.content)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/discussions/{discussion_id}", response_model=discussion_schema.DiscussionOut)
def read_discussion(
    discussion_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return discussion_service.get_discussion(db, current_user, discussion_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post(
    "/discussions/{discussion_id}/replies",
    response_model=discussion_schema.ReplyOut,
    status_code=status.HTTP_201_CREATED,
)
def reply_to_discussion(
    discussion_id: int,
    payload: discussion_schema.ReplyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return discussion_service.add_reply(db, current_user, discussion_id, payload.content)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/discussions/{discussion_id}/resolve", response_model=discussion_schema.DiscussionOut)
def resolve_discussion(
    discussion_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return discussion_service.resolve(db, current_user, discussion_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/discussions/{discussion_id}/upvote", response_model=discussion_schema.UpvoteOut)
def toggle_discussion_upvote(
    discussion_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        upvoted, count = discussion_service.toggle_upvote(db, current_user, discussion_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return discussion_schema.UpvoteOut(upvoted=upvoted, upvote_count=count)


@router.get("/courses/{course_id}/announcements", response_model=List[discussion_schema.AnnouncementOut])
def list_announcements(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return discussion_service.list_announcements(db, current_user, course_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post(
    "/courses/{course_id}/announcements",
    response_model=discussion_schema.AnnouncementOut,
    status_code=status.HTTP_201_CREATED,
)
def create_announcement(
    course_id: int,
    payload: discussion_schema.AnnouncementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return discussion_service.create_announcement(db, current_user, course_id, payload.title, payload.content)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.patch("/announcements/{announcement_id}", response_model=discussion_schema.AnnouncementOut)
def update_announcement(
    announcement_id: int,
    payload: discussion_schema.AnnouncementUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return discussion_service.update_announcement(
            db, current_user, announcement_id, title=payload.title, content=payload.content
        )
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.delete("/announcements/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_announcement(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        discussion_service.delete_announcement(db, current_user, announcement_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# router/admin_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, update
from sqlalchemy.orm import Session, selectinload

from elibrary.auth import oauth2
from elibrary.database.connection import get_db
from elibrary.models.all_model import Resource, User as UserModel
from elibrary.router.resource_routes import to_response, with_ratings
from elibrary.schemas.all_schema import (
    ResourceResponse,
    StatsResponse,
    SubjectCount,
    TopDownload,
    UserResponse,
)

logger = logging.getLogger("elibrary.admin")

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(oauth2.require_roles("admin"))],
)

TOP_DOWNLOADS_LIMIT = 10


def _moderate(db: Session, resource_id: int, new_status: str, admin: UserModel) -> ResourceResponse:
    """Move a pending resource to ``new_status``.

    The conditional UPDATE only matches pending rows, so two admins racing on
    the same resource cannot both win.
    """
    result = db.execute(
        update(Resource)
        .where(Resource.id == resource_id, Resource.status == "pending")
        .values(status=new_status)
    )
    if result.rowcount == 0:
        db.rollback()
        resource = db.get(Resource, resource_id)
        if resource is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Resource is already {resource.status}",
        )
    db.commit()
    logger.info("Admin %s set resource %s to %s", admin.id, resource_id, new_status)
    return with_ratings(db, [db.get(Resource, resource_id)])[0]


def _set_blocked(db: Session, user_id: int, blocked: bool, admin: UserModel) -> UserModel:
    user = db.get(UserModel, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    if blocked and user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins cannot be blocked")
    user.is_blocked = blocked
    db.commit()
    db.refresh(user)
    logger.info("Admin %s %s user %s", admin.id, "blocked" if blocked else "unblocked", user_id)
    return user


@router.get("/pending", response_model=List[ResourceResponse])
def pending(db: Session = Depends(get_db)):
    """Moderation queue, oldest first."""
    items = (
        db.query(Resource)
        .options(selectinload(Resource.uploaded_by), selectinload(Resource.tag_rows))
        .filter(Resource.status == "pending")
        .order_by(Resource.created_at.asc(), Resource.id.asc())
        .all()
    )
    return [to_response(r) for r in items]


@router.post("/approve/{resource_id}", response_model=ResourceResponse)
def approve(
    resource_id: int,
    db: Session = Depends(get_db),
    admin: UserModel = Depends(oauth2.get_current_user),
):
    return _moderate(db, resource_id, "approved", admin)


@router.post("/reject/{resource_id}", response_model=ResourceResponse)
def reject(
    resource_id: int,
    db: Session = Depends(get_db),
    admin: UserModel = Depends(oauth2.get_current_user),
):
    return _moderate(db, resource_id, "rejected", admin)


@router.get("/users", response_model=List[UserResponse])
def users(db: Session = Depends(get_db)):
    return db.query(UserModel).order_by(UserModel.id.asc()).all()


@router.post("/block/{user_id}", response_model=UserResponse)
def block(
    user_id: int,
    db: Session = Depends(get_db),
    admin: UserModel = Depends(oauth2.get_current_user),
):
    return _set_blocked(db, user_id, True, admin)


@router.post("/unblock/{user_id}", response_model=UserResponse)
def unblock(
    user_id: int,
    db: Session = Depends(get_db),
    admin: UserModel = Depends(oauth2.get_current_user),
):
    return _set_blocked(db, user_id, False, admin)


@router.get("/stats", response_model=StatsResponse)
def stats(db: Session = Depends(get_db)):
    top = (
        db.query(Resource)
        .filter(Resource.status == "approved")
        .order_by(Resource.downloads_count.desc(), Resource.id.asc())
        .limit(TOP_DOWNLOADS_LIMIT)
        .all()
    )
    count = func.count(Resource.id).label("count")
    by_subject = (
        db.query(Resource.subject, count)
        .filter(Resource.status == "approved")
        .group_by(Resource.subject)
        .order_by(count.desc(), Resource.subject.asc())
        .all()
    )
    return StatsResponse(
        top_downloads=[TopDownload.model_validate(r) for r in top],
        by_subject=[SubjectCount(subject=s, count=c) for s, c in by_subject],
    )

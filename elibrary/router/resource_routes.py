# router/resource_routes.py
import logging
from typing import Iterable, List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from elibrary.auth import oauth2
from elibrary.database.connection import get_db
from elibrary.models.all_model import Rating, Resource, ResourceTag, User as UserModel
from elibrary.schemas.all_schema import (
    DownloadResponse,
    MessageResponse,
    RatingSummary,
    ResourceResponse,
    Status,
)
from elibrary.utilis import file_storage

logger = logging.getLogger("elibrary.resources")

router = APIRouter(
    prefix="/api/resources",
    tags=["Resources"]
)

MAX_LIST_LIMIT = 100

SORT_COLUMNS = {
    "createdAt": Resource.created_at,
    "updatedAt": Resource.updated_at,
    "title": Resource.title,
    "subject": Resource.subject,
    "downloadsCount": Resource.downloads_count,
}


def split_tags(raw: Optional[Iterable[str]]) -> List[str]:
    """Flatten comma-separated and repeated tag fields, keeping first-seen order."""
    tags: List[str] = []
    for value in raw or []:
        for part in str(value).split(","):
            part = part.strip()
            if part and part not in tags:
                tags.append(part)
    return tags


def rating_summaries(db: Session, resource_ids: List[int]) -> dict:
    """Average and count of ratings per resource, in one GROUP BY query."""
    if not resource_ids:
        return {}
    rows = (
        db.query(Rating.resource_id, func.avg(Rating.rating), func.count(Rating.id))
        .filter(Rating.resource_id.in_(resource_ids))
        .group_by(Rating.resource_id)
        .all()
    )
    return {rid: RatingSummary(avg=float(avg), count=count) for rid, avg, count in rows}


def to_response(resource: Resource, summary: Optional[RatingSummary] = None) -> ResourceResponse:
    out = ResourceResponse.model_validate(resource)
    if summary is not None:
        out = out.model_copy(update={"rating": summary})
    return out


def with_ratings(db: Session, resources: List[Resource]) -> List[ResourceResponse]:
    summaries = rating_summaries(db, [r.id for r in resources])
    return [to_response(r, summaries.get(r.id, RatingSummary())) for r in resources]


def like_pattern(term: str) -> str:
    """Substring pattern for ``ILIKE`` with ``%``, ``_`` and ``\\`` matched literally."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def get_resource_or_404(db: Session, resource_id: int) -> Resource:
    resource = db.get(Resource, resource_id)
    if resource is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return resource


# ---------------------------------------------------------------------------
# POST /api/resources
# ---------------------------------------------------------------------------
@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
def create_resource(
    title: str = Form(..., min_length=1),
    subject: str = Form(..., min_length=1),
    description: str = Form(""),
    tags: Optional[List[str]] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(oauth2.get_current_user),
):
    """Store the uploaded file and record its metadata.

    Admin uploads are published immediately; everyone else's wait in the
    moderation queue.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File required")

    try:
        file_path = file_storage.save_upload(file.file, file.filename)
    except file_storage.UploadTooLarge as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc))
    except OSError:
        logger.exception("Could not store upload '%s'", file.filename)
        raise HTTPException(status_code=500, detail="Could not store file")

    resource = Resource(
        title=title.strip(),
        description=description.strip(),
        subject=subject.strip(),
        file_path=file_path,
        uploaded_by_id=current_user.id,
        status="approved" if current_user.is_admin else "pending",
        downloads_count=0,
    )
    resource.tag_rows = [ResourceTag(tag=t) for t in split_tags(tags)]
    db.add(resource)
    try:
        db.commit()
    except Exception:
        db.rollback()
        file_storage.delete_upload(file_path)
        raise
    db.refresh(resource)
    logger.info("User %s uploaded resource %s (%s)", current_user.id, resource.id, resource.status)
    return to_response(resource, RatingSummary())


# ---------------------------------------------------------------------------
# GET /api/resources
# ---------------------------------------------------------------------------
@router.get("", response_model=List[ResourceResponse])
def list_resources(
    q: Optional[str] = None,
    subject: Optional[str] = None,
    tags: Optional[str] = None,
    uploader: Optional[int] = None,
    status_filter: Optional[Status] = Query(None, alias="status"),
    sort_by: Literal["createdAt", "updatedAt", "title", "subject", "downloadsCount"] = Query(
        "createdAt", alias="sortBy"
    ),
    order: Literal["asc", "desc"] = "desc",
    limit: int = Query(MAX_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    db: Session = Depends(get_db),
):
    """Browse the catalog. Only approved resources unless ``status`` says otherwise."""
    query = db.query(Resource).options(
        selectinload(Resource.uploaded_by),
        selectinload(Resource.tag_rows),
    )

    query = query.filter(Resource.status == (status_filter or "approved"))
    if subject:
        query = query.filter(Resource.subject == subject)
    if uploader is not None:
        query = query.filter(Resource.uploaded_by_id == uploader)
    wanted_tags = split_tags([tags]) if tags else []
    if wanted_tags:
        tagged = select(ResourceTag.resource_id).where(ResourceTag.tag.in_(wanted_tags))
        query = query.filter(Resource.id.in_(tagged))
    terms = (q or "").split()
    if terms:
        query = query.filter(
            or_(*(Resource.title.ilike(like_pattern(term), escape="\\") for term in terms))
        )

    column = SORT_COLUMNS[sort_by]
    if order == "asc":
        query = query.order_by(column.asc(), Resource.id.asc())
    else:
        query = query.order_by(column.desc(), Resource.id.desc())

    items = query.limit(limit).all()
    return with_ratings(db, items)


# ---------------------------------------------------------------------------
# GET /api/resources/{id}
# ---------------------------------------------------------------------------
@router.get("/{resource_id}", response_model=ResourceResponse)
def get_resource(resource_id: int, db: Session = Depends(get_db)):
    resource = get_resource_or_404(db, resource_id)
    return with_ratings(db, [resource])[0]


# ---------------------------------------------------------------------------
# DELETE /api/resources/{id}
# ---------------------------------------------------------------------------
@router.delete("/{resource_id}", response_model=MessageResponse)
def delete_resource(
    resource_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(oauth2.get_current_user),
):
    resource = get_resource_or_404(db, resource_id)
    if resource.uploaded_by_id != current_user.id and not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    file_path = resource.file_path
    db.delete(resource)
    db.commit()
    file_storage.delete_upload(file_path)
    logger.info("User %s deleted resource %s", current_user.id, resource_id)
    return {"message": "Deleted"}


# ---------------------------------------------------------------------------
# POST /api/resources/{id}/download
# ---------------------------------------------------------------------------
@router.post("/{resource_id}/download", response_model=DownloadResponse)
def register_download(resource_id: int, db: Session = Depends(get_db)):
    result = db.execute(
        update(Resource)
        .where(Resource.id == resource_id)
        .values(downloads_count=Resource.downloads_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    # Read back inside the same transaction; no RETURNING needed
    count = db.execute(
        select(Resource.downloads_count).where(Resource.id == resource_id)
    ).scalar_one()
    db.commit()
    return {"downloads_count": count}

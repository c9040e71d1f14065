# router/rating_routes.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from elibrary.auth import oauth2
from elibrary.database.connection import get_db
from elibrary.database.upsert import upsert
from elibrary.models.all_model import Rating, User as UserModel
from elibrary.router.resource_routes import get_resource_or_404
from elibrary.schemas.all_schema import RatingCreate, RatingResponse

logger = logging.getLogger("elibrary.ratings")

router = APIRouter(
    prefix="/api/ratings",
    tags=["Ratings"]
)


@router.post("", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
def rate_resource(
    request: RatingCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(oauth2.get_current_user),
):
    """Set the caller's rating for a resource, replacing any earlier one."""
    get_resource_or_404(db, request.resource_id)
    upsert(
        db,
        Rating,
        keys={"resource_id": request.resource_id, "user_id": current_user.id},
        values={"rating": request.rating},
    )
    db.commit()
    rating = (
        db.query(Rating)
        .filter(Rating.resource_id == request.resource_id, Rating.user_id == current_user.id)
        .one()
    )
    logger.debug("User %s rated resource %s: %s", current_user.id, request.resource_id, rating.rating)
    return rating

# schemas/all_schema.py

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["student", "teacher", "admin"]
Status = Literal["pending", "approved", "rejected"]


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case accepted on input
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- User Schemas ---
class UserBrief(CamelModel):
    id: int
    name: str
    role: Role


class UserPublic(UserBrief):
    email: EmailStr


class UserResponse(UserPublic):
    is_blocked: bool = False
    created_at: Optional[datetime] = None


# --- Auth Schemas ---
class SignupRequest(CamelModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = "student"

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenWithUser(CamelModel):
    token: str
    user: UserPublic


class TokenData(BaseModel):
    user_id: int
    role: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


# --- Resource Schemas ---
class RatingSummary(BaseModel):
    avg: float = 0
    count: int = 0


class ResourceResponse(CamelModel):
    id: int
    title: str
    description: str = ""
    subject: str
    tags: List[str] = []
    file_path: str
    uploaded_by: UserBrief
    status: Status
    downloads_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    rating: RatingSummary = Field(default_factory=RatingSummary)


class DownloadResponse(CamelModel):
    downloads_count: int


# --- Comment Schemas ---
class CommentCreate(CamelModel):
    resource_id: int
    comment: str

    @field_validator("comment")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment must not be empty")
        return v


class CommentResponse(CamelModel):
    id: int
    resource_id: int
    user_id: int
    user: Optional[UserBrief] = None
    comment: str
    created_at: Optional[datetime] = None


# --- Rating Schemas ---
class RatingCreate(CamelModel):
    resource_id: int
    rating: int = Field(..., ge=1, le=5)


class RatingResponse(CamelModel):
    id: int
    resource_id: int
    user_id: int
    rating: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Bookmark Schemas ---
class BookmarkRequest(CamelModel):
    resource_id: int


class BookmarkResponse(CamelModel):
    id: int
    user_id: int
    resource_id: int
    created_at: Optional[datetime] = None
    resource: Optional[ResourceResponse] = None


# --- Admin Schemas ---
class TopDownload(CamelModel):
    id: int
    title: str
    downloads_count: int


class SubjectCount(BaseModel):
    subject: str
    count: int


class StatsResponse(CamelModel):
    top_downloads: List[TopDownload]
    by_subject: List[SubjectCount]

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from elibrary.database.connection import Base

ROLES = ("student", "teacher", "admin")
STATUSES = ("pending", "approved", "rejected")


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default="student")
    is_blocked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    resources = relationship("Resource", back_populates="uploaded_by")

    __table_args__ = (
        CheckConstraint("role IN ('student', 'teacher', 'admin')", name="ck_users_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class Resource(Base):
    __tablename__ = "resources"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    subject = Column(String(120), nullable=False, index=True)
    file_path = Column(String(500), nullable=False)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="pending", index=True)
    downloads_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    uploaded_by = relationship("User", back_populates="resources")
    tag_rows = relationship(
        "ResourceTag",
        back_populates="resource",
        cascade="all, delete-orphan",
        order_by="ResourceTag.id",
    )
    comments = relationship("Comment", back_populates="resource", cascade="all, delete-orphan")
    ratings = relationship("Rating", back_populates="resource", cascade="all, delete-orphan")
    bookmarks = relationship("Bookmark", back_populates="resource", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="ck_resources_status"
        ),
    )

    @property
    def tags(self) -> list[str]:
        return [row.tag for row in self.tag_rows]


class ResourceTag(Base):
    __tablename__ = "resource_tags"
    id = Column(Integer, primary_key=True)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False)
    tag = Column(String(64), nullable=False, index=True)

    resource = relationship("Resource", back_populates="tag_rows")

    __table_args__ = (UniqueConstraint("resource_id", "tag", name="uq_resource_tag"),)


class Comment(Base):
    __tablename__ = "comments"
    id = Column(Integer, primary_key=True, index=True)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    resource = relationship("Resource", back_populates="comments")
    user = relationship("User")


class Rating(Base):
    __tablename__ = "ratings"
    id = Column(Integer, primary_key=True, index=True)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    resource = relationship("Resource", back_populates="ratings")

    # One rating per (resource, user); upserts conflict on this constraint
    __table_args__ = (
        UniqueConstraint("resource_id", "user_id", name="uq_rating_resource_user"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_ratings_range"),
    )


class Bookmark(Base):
    __tablename__ = "bookmarks"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    resource = relationship("Resource", back_populates="bookmarks")

    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="uq_bookmark_user_resource"),
    )

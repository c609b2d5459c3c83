from typing import Optional, List
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON, Text
from app.models.user import utc_now


class BlogStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Blog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Author
    user_id: int = Field(foreign_key="user.id", index=True)

    # Content
    title: str = Field(index=True)
    content: str = Field(sa_column=Column(Text))
    category: str = Field(index=True)
    cover_image: str = ""

    # Status
    status: BlogStatus = Field(default=BlogStatus.PUBLISHED, index=True)
    published_at: Optional[datetime] = None

    # Engagement
    views: int = Field(default=0)
    likes: List[int] = Field(default_factory=list, sa_column=Column(JSON))  # user ids

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_published(self) -> bool:
        return self.status == BlogStatus.PUBLISHED


class Comment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    blog_id: int = Field(foreign_key="blog.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    text: str
    created_at: datetime = Field(default_factory=utc_now)


class Bookmark(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    blog_id: int = Field(foreign_key="blog.id", index=True)
    saved_at: datetime = Field(default_factory=utc_now)

from typing import Optional
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel
from app.models.user import utc_now


class NotificationType(str, Enum):
    FOLLOW = "follow"
    LIKE = "like"
    COMMENT = "comment"
    MENTION = "mention"


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Recipient
    user_id: int = Field(foreign_key="user.id", index=True)

    type: NotificationType
    from_user_id: int = Field(foreign_key="user.id")
    blog_id: Optional[int] = Field(default=None, foreign_key="blog.id")
    text: str
    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now, index=True)

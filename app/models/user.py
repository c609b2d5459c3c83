from typing import Dict, List, Optional
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_email_preferences() -> Dict[str, bool]:
    return {
        "newFollower": True,
        "newComment": True,
        "blogLiked": True,
        "newsletter": True,
    }


class UserBase(SQLModel):
    name: str
    email: str = Field(unique=True, index=True)

    # Profile
    bio: str = ""
    profile_picture: str = ""
    location: str = ""
    occupation: str = ""
    # platform -> url, e.g. {"github": "https://github.com/..."}
    social_links: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON))
    role: str = "user"


class User(UserBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    password_hash: str

    # Social graph, ids in the order the relation was created.
    # Lists are reassigned rather than mutated in place so SQLAlchemy sees the change.
    followers: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    following: List[int] = Field(default_factory=list, sa_column=Column(JSON))

    email_preferences: Dict[str, bool] = Field(default_factory=default_email_preferences, sa_column=Column(JSON))

    # Password reset (sha256 of the emailed token)
    reset_password_token: Optional[str] = Field(default=None, index=True)
    reset_password_expire: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class UserPublic(UserBase):
    """User as returned to its owner: no credentials or reset state."""
    id: int
    followers: List[int] = []
    following: List[int] = []
    email_preferences: Dict[str, bool] = {}
    created_at: datetime

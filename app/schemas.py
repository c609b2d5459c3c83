from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.blog import Blog, BlogStatus
from app.models.notification import NotificationType
from app.models.user import User


class UserSummary(BaseModel):
    id: int
    name: str
    profilePicture: str = ""
    bio: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, name=user.name, profilePicture=user.profile_picture, bio=user.bio)


class UserSearchResult(UserSummary):
    followersCount: int = 0


class NotificationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    type: NotificationType
    from_: int = Field(alias="from")
    fromUser: Optional[UserSummary] = None
    blog: Optional[int] = None
    blogTitle: Optional[str] = None
    text: str
    read: bool
    createdAt: datetime


class BlogOut(BaseModel):
    id: int
    title: str
    content: str
    category: str
    coverImage: str = ""
    status: BlogStatus
    publishedAt: Optional[datetime] = None
    createdAt: datetime
    updatedAt: datetime
    views: int = 0
    likesCount: int = 0
    commentsCount: int = 0
    author: Optional[UserSummary] = None

    @classmethod
    def from_blog(cls, blog: Blog, comments_count: int = 0, author: Optional[User] = None) -> "BlogOut":
        return cls(
            id=blog.id,
            title=blog.title,
            content=blog.content,
            category=blog.category,
            coverImage=blog.cover_image,
            status=blog.status,
            publishedAt=blog.published_at,
            createdAt=blog.created_at,
            updatedAt=blog.updated_at,
            views=blog.views,
            likesCount=len(blog.likes or []),
            commentsCount=comments_count,
            author=UserSummary.from_user(author) if author else None,
        )


class CommentOut(BaseModel):
    id: int
    text: str
    user: Optional[UserSummary] = None
    createdAt: datetime


class FollowStatus(BaseModel):
    isFollowing: bool
    followersCount: int
    followingCount: int


class LikeStatus(BaseModel):
    liked: bool
    likesCount: int


class PublicProfile(BaseModel):
    id: int
    name: str
    bio: str = ""
    profilePicture: str = ""
    location: str = ""
    occupation: str = ""
    socialLinks: Dict[str, str] = {}
    followers: int = 0
    following: int = 0
    postCount: int = 0
    totalViews: int = 0
    topCategory: str = "N/A"
    isFollowing: bool = False
    joinedDate: datetime
    blogs: List[BlogOut] = []


class DashboardStats(BaseModel):
    totalPosts: int
    totalComments: int
    totalLikes: int
    totalViews: int
    engagementRate: float
    followers: int
    following: int


class ActivityItem(BaseModel):
    id: int
    title: str
    createdAt: datetime


class DashboardActivity(BaseModel):
    recentPosts: List[ActivityItem]
    likedPosts: List[ActivityItem]
    commentedPosts: List[ActivityItem]

from collections import Counter
from typing import Dict, Iterable, List, Optional

from sqlalchemy import String, cast
from sqlmodel import Session, select, func

from app.core.exceptions import NotFoundError
from app.models.blog import Blog, BlogStatus, Comment
from app.models.user import User
from app.schemas import ActivityItem, BlogOut, DashboardActivity, DashboardStats, PublicProfile

ACTIVITY_LIMIT = 5


def top_category(categories: Iterable[str]) -> str:
    """Most frequent category; ties go to the one seen first. "N/A" when empty."""
    counts = Counter(categories)
    if not counts:
        return "N/A"
    # most_common is stable, so equal counts keep first-seen order
    return counts.most_common(1)[0][0]


def engagement_rate(comments: int, likes: int, posts: int) -> float:
    if posts == 0:
        return 0.0
    return (comments + likes) / posts


class ProfileService:
    """Read-only views derived from a user and their blogs."""

    def __init__(self, session: Session):
        self.session = session

    def _comment_counts(self, blog_ids: List[int]) -> Dict[int, int]:
        if not blog_ids:
            return {}
        rows = self.session.exec(
            select(Comment.blog_id, func.count(Comment.id))
            .where(Comment.blog_id.in_(blog_ids))
            .group_by(Comment.blog_id)
        ).all()
        return {blog_id: count for blog_id, count in rows}

    def get_public_profile(self, user_id: int, requesting_user_id: Optional[int] = None) -> PublicProfile:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")

        blogs = self.session.exec(
            select(Blog)
            .where(Blog.user_id == user_id, Blog.status == BlogStatus.PUBLISHED)
            .order_by(Blog.created_at.desc(), Blog.id.desc())
        ).all()
        comment_counts = self._comment_counts([b.id for b in blogs])

        is_following = requesting_user_id is not None and requesting_user_id in (user.followers or [])

        return PublicProfile(
            id=user.id,
            name=user.name,
            bio=user.bio or "",
            profilePicture=user.profile_picture,
            location=user.location,
            occupation=user.occupation,
            socialLinks=user.social_links or {},
            followers=len(user.followers or []),
            following=len(user.following or []),
            postCount=len(blogs),
            totalViews=sum(b.views or 0 for b in blogs),
            topCategory=top_category(b.category for b in blogs),
            isFollowing=is_following,
            joinedDate=user.created_at,
            blogs=[BlogOut.from_blog(b, comment_counts.get(b.id, 0)) for b in blogs],
        )

    def get_own_stats(self, user_id: int) -> DashboardStats:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")

        blogs = self.session.exec(select(Blog).where(Blog.user_id == user_id)).all()
        comment_counts = self._comment_counts([b.id for b in blogs])

        total_comments = sum(comment_counts.values())
        total_likes = sum(len(b.likes or []) for b in blogs)
        return DashboardStats(
            totalPosts=len(blogs),
            totalComments=total_comments,
            totalLikes=total_likes,
            totalViews=sum(b.views or 0 for b in blogs),
            engagementRate=engagement_rate(total_comments, total_likes, len(blogs)),
            followers=len(user.followers or []),
            following=len(user.following or []),
        )

    def get_recent_activity(self, user_id: int) -> DashboardActivity:
        recent = self.session.exec(
            select(Blog)
            .where(Blog.user_id == user_id)
            .order_by(Blog.created_at.desc(), Blog.id.desc())
            .limit(ACTIVITY_LIMIT)
        ).all()

        # likes is a JSON list: narrow with a text match in SQL, confirm membership here
        liked = []
        candidates = self.session.exec(
            select(Blog)
            .where(cast(Blog.likes, String).like(f"%{user_id}%"))
            .order_by(Blog.created_at.desc(), Blog.id.desc())
        )
        for blog in candidates:
            if user_id in (blog.likes or []):
                liked.append(blog)
                if len(liked) == ACTIVITY_LIMIT:
                    break

        commented: List[Blog] = []
        seen = set()
        rows = self.session.exec(
            select(Blog)
            .join(Comment, Comment.blog_id == Blog.id)
            .where(Comment.user_id == user_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        ).all()
        for blog in rows:
            if blog.id in seen:
                continue
            seen.add(blog.id)
            commented.append(blog)
            if len(commented) == ACTIVITY_LIMIT:
                break

        def items(blogs: List[Blog]) -> List[ActivityItem]:
            return [ActivityItem(id=b.id, title=b.title, createdAt=b.created_at) for b in blogs]

        return DashboardActivity(
            recentPosts=items(recent),
            likedPosts=items(liked),
            commentedPosts=items(commented),
        )

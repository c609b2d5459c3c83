import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlmodel import Session, select, func, delete

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models.blog import Blog, BlogStatus, Bookmark, Comment
from app.models.notification import Notification, NotificationType
from app.models.user import User
from app.schemas import BlogOut, CommentOut, LikeStatus, UserSummary
from app.services.notification import NotificationService

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@([\w.-]+)")


class BlogService:
    def __init__(self, session: Session, notifications: Optional[NotificationService] = None):
        self.session = session
        self.notifications = notifications or NotificationService(session)

    def _get_visible(self, blog_id: int, viewer_id: Optional[int] = None) -> Blog:
        blog = self.session.get(Blog, blog_id)
        # Drafts are only visible to their author
        if not blog or (not blog.is_published and blog.user_id != viewer_id):
            raise NotFoundError("Blog not found")
        return blog

    def _get_owned(self, blog_id: int, actor_id: int) -> Blog:
        blog = self.session.get(Blog, blog_id)
        if not blog:
            raise NotFoundError("Blog not found")
        if blog.user_id != actor_id:
            raise ForbiddenError("User not authorized")
        return blog

    def to_out(self, blogs: List[Blog]) -> List[BlogOut]:
        ids = [b.id for b in blogs]
        counts: Dict[int, int] = {}
        authors: Dict[int, User] = {}
        if ids:
            rows = self.session.exec(
                select(Comment.blog_id, func.count(Comment.id))
                .where(Comment.blog_id.in_(ids))
                .group_by(Comment.blog_id)
            ).all()
            counts = {blog_id: count for blog_id, count in rows}
            author_ids = {b.user_id for b in blogs}
            authors = {u.id: u for u in self.session.exec(select(User).where(User.id.in_(author_ids))).all()}
        return [BlogOut.from_blog(b, counts.get(b.id, 0), authors.get(b.user_id)) for b in blogs]

    def list_blogs(self, category: Optional[str] = None) -> List[BlogOut]:
        query = select(Blog).where(Blog.status == BlogStatus.PUBLISHED)
        if category:
            query = query.where(Blog.category == category)
        blogs = self.session.exec(query.order_by(Blog.created_at.desc(), Blog.id.desc())).all()
        return self.to_out(blogs)

    def list_categories(self) -> List[str]:
        return list(self.session.exec(
            select(Blog.category)
            .where(Blog.status == BlogStatus.PUBLISHED)
            .distinct()
            .order_by(Blog.category)
        ).all())

    def get_blog(self, blog_id: int, viewer_id: Optional[int] = None) -> BlogOut:
        """Return a blog and count the view."""
        blog = self._get_visible(blog_id, viewer_id)
        # Increment in SQL so concurrent readers don't lose counts
        self.session.exec(update(Blog).where(Blog.id == blog.id).values(views=Blog.views + 1))
        self.session.commit()
        self.session.refresh(blog)
        return self.to_out([blog])[0]

    def create_blog(
        self,
        author_id: int,
        title: str,
        content: str,
        category: str,
        cover_image: str = "",
        status: BlogStatus = BlogStatus.PUBLISHED,
    ) -> BlogOut:
        for field_name, value in (("Title", title), ("Content", content), ("Category", category)):
            if not value or not value.strip():
                raise ValidationError(f"{field_name} is required")

        now = datetime.now(timezone.utc)
        blog = Blog(
            user_id=author_id,
            title=title.strip(),
            content=content,
            category=category.strip(),
            cover_image=cover_image or "",
            status=status,
            published_at=now if status == BlogStatus.PUBLISHED else None,
            created_at=now,
            updated_at=now,
        )
        self.session.add(blog)
        self.session.commit()
        self.session.refresh(blog)
        logger.info(f"User {author_id} created blog {blog.id}")
        return self.to_out([blog])[0]

    def update_blog(self, blog_id: int, actor_id: int, **fields) -> BlogOut:
        blog = self._get_owned(blog_id, actor_id)

        for field_name in ("title", "content", "category"):
            value = fields.get(field_name)
            if value is not None:
                if not value.strip():
                    raise ValidationError(f"{field_name.capitalize()} is required")
                setattr(blog, field_name, value.strip() if field_name != "content" else value)
        if fields.get("cover_image") is not None:
            blog.cover_image = fields["cover_image"]
        status = fields.get("status")
        if status is not None:
            blog.status = status
            if status == BlogStatus.PUBLISHED and blog.published_at is None:
                blog.published_at = datetime.now(timezone.utc)

        blog.updated_at = datetime.now(timezone.utc)
        self.session.add(blog)
        self.session.commit()
        self.session.refresh(blog)
        return self.to_out([blog])[0]

    def delete_blog(self, blog_id: int, actor_id: int) -> None:
        blog = self._get_owned(blog_id, actor_id)

        self.session.exec(delete(Comment).where(Comment.blog_id == blog.id))
        self.session.exec(delete(Bookmark).where(Bookmark.blog_id == blog.id))
        # Notifications outlive the post they mention
        self.session.exec(update(Notification).where(Notification.blog_id == blog.id).values(blog_id=None))
        self.session.delete(blog)
        self.session.commit()
        logger.info(f"User {actor_id} deleted blog {blog_id}")

    def toggle_like(self, blog_id: int, user_id: int) -> LikeStatus:
        blog = self._get_visible(blog_id, user_id)
        likes = list(blog.likes or [])

        liked = user_id not in likes
        if liked:
            likes.append(user_id)
        else:
            likes.remove(user_id)
        blog.likes = likes
        self.session.add(blog)
        self.session.commit()
        self.session.refresh(blog)

        if liked:
            liker = self.session.get(User, user_id)
            self.notifications.notify(
                target_user_id=blog.user_id,
                type=NotificationType.LIKE,
                from_user_id=user_id,
                text=f"{liker.name} liked your post",
                blog_id=blog.id,
            )
        return LikeStatus(liked=liked, likesCount=len(blog.likes))

    def list_comments(self, blog_id: int, viewer_id: Optional[int] = None) -> List[CommentOut]:
        self._get_visible(blog_id, viewer_id)
        comments = self.session.exec(
            select(Comment).where(Comment.blog_id == blog_id).order_by(Comment.created_at, Comment.id)
        ).all()
        return self._comments_out(comments)

    def _comments_out(self, comments: List[Comment]) -> List[CommentOut]:
        user_ids = {c.user_id for c in comments}
        users: Dict[int, User] = {}
        if user_ids:
            users = {u.id: u for u in self.session.exec(select(User).where(User.id.in_(user_ids))).all()}
        return [
            CommentOut(
                id=c.id,
                text=c.text,
                user=UserSummary.from_user(users[c.user_id]) if c.user_id in users else None,
                createdAt=c.created_at,
            )
            for c in comments
        ]

    def add_comment(self, blog_id: int, user_id: int, text: str) -> CommentOut:
        if not text or not text.strip():
            raise ValidationError("Comment text is required")
        blog = self._get_visible(blog_id, user_id)
        commenter = self.session.get(User, user_id)

        comment = Comment(blog_id=blog.id, user_id=user_id, text=text.strip())
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)

        self.notifications.notify(
            target_user_id=blog.user_id,
            type=NotificationType.COMMENT,
            from_user_id=user_id,
            text=f"{commenter.name} commented on your post",
            blog_id=blog.id,
        )
        for mentioned in self._mentioned_users(comment.text):
            if mentioned.id in (user_id, blog.user_id):
                continue
            self.notifications.notify(
                target_user_id=mentioned.id,
                type=NotificationType.MENTION,
                from_user_id=user_id,
                text=f"{commenter.name} mentioned you in a comment",
                blog_id=blog.id,
            )
        return self._comments_out([comment])[0]

    def _mentioned_users(self, text: str) -> List[User]:
        """Users whose name, ignoring spaces and case, appears as an @handle."""
        handles = {h.lower().rstrip(".") for h in MENTION_PATTERN.findall(text)}
        if not handles:
            return []
        return list(self.session.exec(
            select(User)
            .where(func.lower(func.replace(User.name, " ", "")).in_(handles))
            .order_by(User.id)
        ).all())

from datetime import datetime, timezone
from typing import Dict, List, Optional
from sqlmodel import Session, select, func, or_

from app.core.exceptions import NotFoundError, ValidationError
from app.models.blog import Blog, BlogStatus, Bookmark
from app.models.user import User
from app.schemas import BlogOut, UserSearchResult
from app.services.blog import BlogService

SEARCH_LIMIT = 10


class UserService:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def update_profile(
        self,
        user_id: int,
        name: Optional[str] = None,
        bio: Optional[str] = None,
        location: Optional[str] = None,
        occupation: Optional[str] = None,
        profile_picture: Optional[str] = None,
        social_links: Optional[Dict[str, str]] = None,
        email_preferences: Optional[Dict[str, bool]] = None,
    ) -> User:
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        if name is not None:
            if not name.strip():
                raise ValidationError("Name is required")
            user.name = name.strip()
        if bio is not None:
            user.bio = bio
        if location is not None:
            user.location = location
        if occupation is not None:
            user.occupation = occupation
        if profile_picture is not None:
            user.profile_picture = profile_picture
        if social_links is not None:
            user.social_links = dict(social_links)
        if email_preferences is not None:
            user.email_preferences = {**(user.email_preferences or {}), **email_preferences}

        user.updated_at = datetime.now(timezone.utc)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def toggle_bookmark(self, user_id: int, blog_id: int) -> List[Bookmark]:
        blog = self.session.get(Blog, blog_id)
        if not blog or (blog.status != BlogStatus.PUBLISHED and blog.user_id != user_id):
            raise NotFoundError("Blog not found")

        existing = self.session.exec(
            select(Bookmark).where(Bookmark.user_id == user_id, Bookmark.blog_id == blog_id)
        ).first()
        if existing:
            self.session.delete(existing)
        else:
            self.session.add(Bookmark(user_id=user_id, blog_id=blog_id))
        self.session.commit()
        return self._bookmarks(user_id)

    def _bookmarks(self, user_id: int) -> List[Bookmark]:
        return list(self.session.exec(
            select(Bookmark)
            .where(Bookmark.user_id == user_id)
            .order_by(Bookmark.saved_at.desc(), Bookmark.id.desc())
        ).all())

    def list_bookmarked_blogs(self, user_id: int) -> List[BlogOut]:
        bookmarks = self._bookmarks(user_id)
        if not bookmarks:
            return []
        blogs = {b.id: b for b in self.session.exec(
            select(Blog).where(Blog.id.in_([bm.blog_id for bm in bookmarks]))
        ).all()}
        ordered = [blogs[bm.blog_id] for bm in bookmarks if bm.blog_id in blogs]
        return BlogService(self.session).to_out(ordered)

    def search_users(self, query: Optional[str]) -> List[UserSearchResult]:
        if not query or not query.strip():
            return []
        pattern = f"%{query.strip().lower()}%"
        users = self.session.exec(
            select(User)
            .where(or_(func.lower(User.name).like(pattern), func.lower(User.bio).like(pattern)))
            .order_by(User.id)
            .limit(SEARCH_LIMIT)
        ).all()
        return [
            UserSearchResult(
                id=u.id,
                name=u.name,
                profilePicture=u.profile_picture,
                bio=u.bio,
                followersCount=len(u.followers or []),
            )
            for u in users
        ]

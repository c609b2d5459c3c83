
# Import all models to register them with SQLModel
from app.models.user import User, UserPublic
from app.models.blog import Blog, BlogStatus, Comment, Bookmark
from app.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "UserPublic",
    "Blog",
    "BlogStatus",
    "Comment",
    "Bookmark",
    "Notification",
    "NotificationType",
]

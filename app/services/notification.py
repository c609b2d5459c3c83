import logging
from typing import Callable, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlmodel import Session, select

from app.core.exceptions import NotFoundError
from app.models.blog import Blog
from app.models.notification import Notification, NotificationType
from app.models.user import User
from app.schemas import NotificationOut, UserSummary
from app.services.email import send_notification_email
from app.services.realtime import ConnectionRegistry

logger = logging.getLogger(__name__)

EMAIL_PREFERENCE_KEYS = {
    NotificationType.FOLLOW: "newFollower",
    NotificationType.LIKE: "blogLiked",
    NotificationType.COMMENT: "newComment",
    NotificationType.MENTION: "newComment",
}

EMAIL_SUBJECTS = {
    NotificationType.FOLLOW: "New Follower on BlogVerse",
    NotificationType.LIKE: "Someone liked your post",
    NotificationType.COMMENT: "New comment on your post",
    NotificationType.MENTION: "You were mentioned in a comment",
}


class NotificationService:
    """
    Persists notifications and fans them out to the live channel and email.

    The stored row is authoritative. Push and email are queued on
    ``background`` and run after the response is sent; when no
    BackgroundTasks is supplied the side channels are skipped.
    """

    def __init__(
        self,
        session: Session,
        connections: Optional[ConnectionRegistry] = None,
        background: Optional[BackgroundTasks] = None,
        mailer: Callable[[str, str, str], bool] = send_notification_email,
    ):
        self.session = session
        self.connections = connections
        self.background = background
        self.mailer = mailer

    def notify(
        self,
        target_user_id: int,
        type: NotificationType,
        from_user_id: int,
        text: str,
        blog_id: Optional[int] = None,
    ) -> Optional[NotificationOut]:
        if target_user_id == from_user_id:
            return None

        target = self.session.get(User, target_user_id)
        if not target:
            raise NotFoundError("User not found")

        notification = Notification(
            user_id=target_user_id,
            type=type,
            from_user_id=from_user_id,
            blog_id=blog_id,
            text=text,
        )
        self.session.add(notification)
        self.session.commit()
        self.session.refresh(notification)

        payload = self._serialize([notification])[0]
        self._dispatch(target, payload)
        return payload

    def _dispatch(self, target: User, payload: NotificationOut) -> None:
        if self.background is None:
            return
        if self.connections is not None:
            event = {"event": "notification", "data": payload.model_dump(mode="json", by_alias=True)}
            self.background.add_task(self.connections.send, target.id, event)

        preference = EMAIL_PREFERENCE_KEYS.get(payload.type, "blogLiked")
        if (target.email_preferences or {}).get(preference, False):
            subject = EMAIL_SUBJECTS.get(payload.type, "New notification from BlogVerse")
            self.background.add_task(self._send_email, target.email, subject, payload.text)

    def _send_email(self, to_email: str, subject: str, text: str) -> None:
        try:
            if not self.mailer(to_email, subject, text):
                logger.warning(f"Notification email to {to_email} was not sent")
        except Exception as e:
            logger.error(f"Error sending notification email to {to_email}: {e}")

    def list_notifications(self, user_id: int) -> List[NotificationOut]:
        notifications = self.session.exec(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        ).all()
        return self._serialize(notifications)

    def mark_read(self, user_id: int, notification_id: int) -> NotificationOut:
        notification = self.session.exec(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        ).first()
        if not notification:
            raise NotFoundError("Notification not found")

        if not notification.read:
            notification.read = True
            self.session.add(notification)
            self.session.commit()
            self.session.refresh(notification)
        return self._serialize([notification])[0]

    def mark_all_read(self, user_id: int) -> int:
        unread = self.session.exec(
            select(Notification).where(
                Notification.user_id == user_id,
                Notification.read == False,
            )
        ).all()
        for notification in unread:
            notification.read = True
            self.session.add(notification)
        self.session.commit()
        return len(unread)

    def _serialize(self, notifications: List[Notification]) -> List[NotificationOut]:
        sender_ids = {n.from_user_id for n in notifications}
        blog_ids = {n.blog_id for n in notifications if n.blog_id is not None}

        senders: Dict[int, User] = {}
        if sender_ids:
            senders = {u.id: u for u in self.session.exec(select(User).where(User.id.in_(sender_ids))).all()}
        titles: Dict[int, str] = {}
        if blog_ids:
            titles = {b.id: b.title for b in self.session.exec(select(Blog).where(Blog.id.in_(blog_ids))).all()}

        result = []
        for n in notifications:
            sender = senders.get(n.from_user_id)
            result.append(NotificationOut(
                id=n.id,
                type=n.type,
                from_=n.from_user_id,
                fromUser=UserSummary.from_user(sender) if sender else None,
                blog=n.blog_id,
                blogTitle=titles.get(n.blog_id) if n.blog_id is not None else None,
                text=n.text,
                read=n.read,
                createdAt=n.created_at,
            ))
        return result

import logging
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from sqlmodel import Session, select

from app.core.exceptions import AlreadyFollowingError, InvalidOperationError, NotFoundError
from app.models.notification import NotificationType
from app.models.user import User
from app.schemas import FollowStatus, UserSummary
from app.services.notification import NotificationService

logger = logging.getLogger(__name__)


class SocialGraphService:
    """
    Follow/unfollow between two users.

    Both sides of the relation (``actor.following`` and ``target.followers``)
    are written in a single commit, so a failure leaves neither side changed.
    Races between concurrent requests can still leave a one-sided edge; see
    ``reconcile_follow_relations``.
    """

    def __init__(self, session: Session, notifications: NotificationService):
        self.session = session
        self.notifications = notifications

    def _load_pair(self, actor_id: int, target_id: int) -> Tuple[User, User]:
        actor = self.session.get(User, actor_id)
        target = self.session.get(User, target_id)
        if not actor or not target:
            raise NotFoundError("User not found")
        return actor, target

    def follow(self, actor_id: int, target_id: int) -> FollowStatus:
        if actor_id == target_id:
            raise InvalidOperationError("Cannot follow yourself")

        actor, target = self._load_pair(actor_id, target_id)
        if target_id in actor.following:
            raise AlreadyFollowingError()

        now = datetime.now(timezone.utc)
        actor.following = actor.following + [target_id]
        if actor_id not in target.followers:
            target.followers = target.followers + [actor_id]
        actor.updated_at = now
        target.updated_at = now

        self.session.add(actor)
        self.session.add(target)
        self.session.commit()
        self.session.refresh(actor)
        self.session.refresh(target)
        logger.info(f"User {actor_id} followed user {target_id}")

        self.notifications.notify(
            target_user_id=target_id,
            type=NotificationType.FOLLOW,
            from_user_id=actor_id,
            text=f"{actor.name} started following you",
        )
        return FollowStatus(
            isFollowing=True,
            followersCount=len(target.followers),
            followingCount=len(actor.following),
        )

    def unfollow(self, actor_id: int, target_id: int) -> FollowStatus:
        """Remove the relation if present; otherwise a no-op returning the current counts."""
        actor, target = self._load_pair(actor_id, target_id)

        changed = False
        if target_id in actor.following:
            actor.following = [uid for uid in actor.following if uid != target_id]
            actor.updated_at = datetime.now(timezone.utc)
            self.session.add(actor)
            changed = True
        if actor_id in target.followers:
            target.followers = [uid for uid in target.followers if uid != actor_id]
            target.updated_at = datetime.now(timezone.utc)
            self.session.add(target)
            changed = True

        if changed:
            self.session.commit()
            self.session.refresh(actor)
            self.session.refresh(target)
            logger.info(f"User {actor_id} unfollowed user {target_id}")

        return FollowStatus(
            isFollowing=False,
            followersCount=len(target.followers),
            followingCount=len(actor.following),
        )

    def list_followers(self, user_id: int) -> List[UserSummary]:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return self._summaries(user.followers)

    def list_following(self, user_id: int) -> List[UserSummary]:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return self._summaries(user.following)

    def _summaries(self, user_ids: List[int]) -> List[UserSummary]:
        if not user_ids:
            return []
        users = {u.id: u for u in self.session.exec(select(User).where(User.id.in_(user_ids))).all()}
        # Keep stored order; ids of missing users are skipped
        return [UserSummary.from_user(users[uid]) for uid in user_ids if uid in users]


def reconcile_follow_relations(session: Session) -> int:
    """
    Add the missing mirror side of every one-sided follow edge.

    Returns the number of edges repaired. Ids pointing at users that no
    longer exist are left untouched.
    """
    users: Dict[int, User] = {u.id: u for u in session.exec(select(User).order_by(User.id)).all()}
    followers = {uid: list(u.followers or []) for uid, u in users.items()}
    following = {uid: list(u.following or []) for uid, u in users.items()}
    repaired = 0

    for uid in users:
        for target_id in following[uid]:
            if target_id in users and uid not in followers[target_id]:
                followers[target_id].append(uid)
                repaired += 1
        for follower_id in followers[uid]:
            if follower_id in users and uid not in following[follower_id]:
                following[follower_id].append(uid)
                repaired += 1

    if repaired:
        for uid, user in users.items():
            if user.followers != followers[uid] or user.following != following[uid]:
                user.followers = followers[uid]
                user.following = following[uid]
                session.add(user)
        session.commit()
        logger.warning(f"Repaired {repaired} one-sided follow relation(s)")
    return repaired

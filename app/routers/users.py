from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session
from pydantic import BaseModel
from datetime import datetime
from app.db.session import get_session
from app.models.user import User
from app.routers.auth import get_current_user, get_current_user_optional, get_user_service
from app.routers.realtime import get_connection_registry
from app.schemas import (
    BlogOut,
    DashboardActivity,
    DashboardStats,
    NotificationOut,
    PublicProfile,
    UserSearchResult,
    UserSummary,
)
from app.services.notification import NotificationService
from app.services.profile import ProfileService
from app.services.realtime import ConnectionRegistry
from app.services.social import SocialGraphService
from app.services.user import UserService

router = APIRouter()


class FollowResponse(BaseModel):
    success: bool = True
    message: str
    isFollowing: bool
    followersCount: int
    followingCount: int

class BookmarkOut(BaseModel):
    blog: int
    savedAt: datetime

class BookmarksResponse(BaseModel):
    bookmarks: List[BookmarkOut]


def get_notification_service(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    connections: ConnectionRegistry = Depends(get_connection_registry),
) -> NotificationService:
    return NotificationService(session, connections=connections, background=background_tasks)

def get_social_service(
    session: Session = Depends(get_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> SocialGraphService:
    return SocialGraphService(session, notifications)

def get_profile_service(session: Session = Depends(get_session)) -> ProfileService:
    return ProfileService(session)


# Static paths are declared before /{user_id}/... so they are matched first

@router.get("/search", response_model=List[UserSearchResult])
def search_users(query: Optional[str] = None, service: UserService = Depends(get_user_service)):
    return service.search_users(query)

@router.get("/profile/{user_id}", response_model=PublicProfile)
def get_public_profile(
    user_id: int,
    current_user: Optional[User] = Depends(get_current_user_optional),
    service: ProfileService = Depends(get_profile_service),
):
    return service.get_public_profile(user_id, current_user.id if current_user else None)

@router.get("/dashboard/stats", response_model=DashboardStats)
def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    return service.get_own_stats(current_user.id)

@router.get("/dashboard/activity", response_model=DashboardActivity)
def get_dashboard_activity(
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    return service.get_recent_activity(current_user.id)

@router.get("/notifications", response_model=List[NotificationOut])
def list_notifications(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    return service.list_notifications(current_user.id)

@router.put("/notifications/read-all")
def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    updated = service.mark_all_read(current_user.id)
    return {"success": True, "message": "All notifications marked as read", "updated_count": updated}

@router.put("/notifications/{notification_id}", response_model=NotificationOut)
def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    return service.mark_read(current_user.id, notification_id)

@router.get("/bookmarks", response_model=List[BlogOut])
def list_bookmarks(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.list_bookmarked_blogs(current_user.id)

@router.post("/bookmarks/{blog_id}", response_model=BookmarksResponse)
def toggle_bookmark(
    blog_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    bookmarks = service.toggle_bookmark(current_user.id, blog_id)
    return BookmarksResponse(bookmarks=[BookmarkOut(blog=b.blog_id, savedAt=b.saved_at) for b in bookmarks])

@router.post("/{user_id}/follow", response_model=FollowResponse)
def follow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: SocialGraphService = Depends(get_social_service),
):
    result = service.follow(current_user.id, user_id)
    return FollowResponse(message="User followed successfully", **result.model_dump())

@router.post("/{user_id}/unfollow", response_model=FollowResponse)
def unfollow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: SocialGraphService = Depends(get_social_service),
):
    result = service.unfollow(current_user.id, user_id)
    return FollowResponse(message="User unfollowed successfully", **result.model_dump())

@router.get("/{user_id}/followers", response_model=List[UserSummary])
def list_followers(user_id: int, service: SocialGraphService = Depends(get_social_service)):
    return service.list_followers(user_id)

@router.get("/{user_id}/following", response_model=List[UserSummary])
def list_following(user_id: int, service: SocialGraphService = Depends(get_social_service)):
    return service.list_following(user_id)

from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session
from pydantic import BaseModel
from app.db.session import get_session
from app.models.blog import BlogStatus
from app.models.user import User
from app.routers.auth import get_current_user, get_current_user_optional
from app.routers.users import get_notification_service
from app.schemas import BlogOut, CommentOut, LikeStatus
from app.services.blog import BlogService
from app.services.notification import NotificationService

router = APIRouter()


class BlogCreate(BaseModel):
    title: str
    content: str
    category: str
    coverImage: Optional[str] = ""
    status: BlogStatus = BlogStatus.PUBLISHED

class BlogUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    coverImage: Optional[str] = None
    status: Optional[BlogStatus] = None

class CommentCreate(BaseModel):
    text: str


def get_blog_service(
    session: Session = Depends(get_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> BlogService:
    return BlogService(session, notifications)


@router.get("/", response_model=List[BlogOut])
def read_blogs(category: Optional[str] = None, service: BlogService = Depends(get_blog_service)):
    return service.list_blogs(category)

@router.get("/categories", response_model=List[str])
def read_categories(service: BlogService = Depends(get_blog_service)):
    return service.list_categories()

@router.get("/category/{category}", response_model=List[BlogOut])
def read_blogs_by_category(category: str, service: BlogService = Depends(get_blog_service)):
    return service.list_blogs(category)

@router.get("/{blog_id}", response_model=BlogOut)
def read_blog(
    blog_id: int,
    current_user: Optional[User] = Depends(get_current_user_optional),
    service: BlogService = Depends(get_blog_service),
):
    return service.get_blog(blog_id, current_user.id if current_user else None)

@router.post("/", response_model=BlogOut)
def create_blog(
    blog_in: BlogCreate,
    current_user: User = Depends(get_current_user),
    service: BlogService = Depends(get_blog_service),
):
    return service.create_blog(
        current_user.id,
        title=blog_in.title,
        content=blog_in.content,
        category=blog_in.category,
        cover_image=blog_in.coverImage or "",
        status=blog_in.status,
    )

@router.put("/{blog_id}", response_model=BlogOut)
def update_blog(
    blog_id: int,
    blog_in: BlogUpdate,
    current_user: User = Depends(get_current_user),
    service: BlogService = Depends(get_blog_service),
):
    return service.update_blog(
        blog_id,
        current_user.id,
        title=blog_in.title,
        content=blog_in.content,
        category=blog_in.category,
        cover_image=blog_in.coverImage,
        status=blog_in.status,
    )

@router.delete("/{blog_id}")
def delete_blog(
    blog_id: int,
    current_user: User = Depends(get_current_user),
    service: BlogService = Depends(get_blog_service),
):
    service.delete_blog(blog_id, current_user.id)
    return {"success": True, "message": "Blog removed"}

@router.post("/{blog_id}/like", response_model=LikeStatus)
def toggle_like(
    blog_id: int,
    current_user: User = Depends(get_current_user),
    service: BlogService = Depends(get_blog_service),
):
    return service.toggle_like(blog_id, current_user.id)

@router.get("/{blog_id}/comments", response_model=List[CommentOut])
def read_comments(
    blog_id: int,
    current_user: Optional[User] = Depends(get_current_user_optional),
    service: BlogService = Depends(get_blog_service),
):
    return service.list_comments(blog_id, current_user.id if current_user else None)

@router.post("/{blog_id}/comments", response_model=CommentOut)
def add_comment(
    blog_id: int,
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_user),
    service: BlogService = Depends(get_blog_service),
):
    return service.add_comment(blog_id, current_user.id, comment_in.text)

from typing import Dict, Optional
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlmodel import Session
from pydantic import BaseModel, EmailStr
from app.db.session import get_session
from app.models.user import User, UserPublic
from app.core.exceptions import AuthError
from app.core.security import decode_access_token
from app.services.auth import AuthService
from app.services.user import UserService

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/token")
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="api/auth/token", auto_error=False)


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserPublic

class Token(BaseModel):
    access_token: str
    token_type: str

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    password: str

class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    occupation: Optional[str] = None
    profilePicture: Optional[str] = None
    socialLinks: Optional[Dict[str, str]] = None
    emailPreferences: Optional[Dict[str, bool]] = None

class ProfileResponse(BaseModel):
    success: bool = True
    user: UserPublic


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(session)

def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)


def user_from_token(token: Optional[str], session: Session) -> Optional[User]:
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        return None
    return session.get(User, user_id)

async def get_current_user(token: str = Depends(oauth2_scheme), session: Session = Depends(get_session)) -> User:
    user = user_from_token(token, session)
    if user is None:
        raise AuthError()
    return user

async def get_current_user_optional(token: Optional[str] = Depends(oauth2_scheme_optional), session: Session = Depends(get_session)) -> Optional[User]:
    return user_from_token(token, session)


@router.post("/register", response_model=AuthResponse)
def register(user_in: UserCreate, service: AuthService = Depends(get_auth_service)):
    user = service.register_user(user_in.name, user_in.email, user_in.password)
    return AuthResponse(token=service.issue_token(user), user=UserPublic.model_validate(user))

@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLogin, service: AuthService = Depends(get_auth_service)):
    user = service.authenticate_user(credentials.email, credentials.password)
    return AuthResponse(token=service.issue_token(user), user=UserPublic.model_validate(user))

@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service),
):
    """OAuth2 form login, used by the interactive docs."""
    user = service.authenticate_user(form_data.username, form_data.password)
    return {"access_token": service.issue_token(user), "token_type": "bearer"}

@router.post("/forgot-password")
def forgot_password(data: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)):
    service.create_password_reset_token(data.email)
    return {"success": True, "message": "Password reset email sent"}

@router.put("/reset-password/{token}")
def reset_password(token: str, data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    service.reset_password(token, data.password)
    return {"success": True, "message": "Password updated successfully"}

@router.get("/me", response_model=UserPublic)
def read_user_me(current_user: User = Depends(get_current_user)):
    return current_user

@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_profile(
        current_user.id,
        name=data.name,
        bio=data.bio,
        location=data.location,
        occupation=data.occupation,
        profile_picture=data.profilePicture,
        social_links=data.socialLinks,
        email_preferences=data.emailPreferences,
    )
    return ProfileResponse(user=UserPublic.model_validate(user))

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.db.session import create_db_and_tables
from app.services.realtime import ConnectionRegistry

# Import models to ensure they are registered with SQLModel metadata
from app.models.user import User
from app.models.blog import Blog, Comment, Bookmark
from app.models.notification import Notification

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")
    create_db_and_tables()
    yield
    logger.info(f"Shutting down {settings.PROJECT_NAME}")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
    description="API for the BlogVerse blogging platform"
)

# Live WebSocket channels per user, shared by every request on this instance
app.state.connections = ConnectionRegistry()

register_exception_handlers(app)

@app.get("/")
def read_root():
    return {"message": "Welcome to BlogVerse API. Visit /docs for Swagger UI."}

from app.routers import auth, blogs, users, realtime

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(blogs.router, prefix="/api/blogs", tags=["blogs"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(realtime.router, tags=["realtime"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

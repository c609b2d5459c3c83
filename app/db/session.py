from sqlmodel import SQLModel, create_engine, Session
from app.core.config import settings

# check_same_thread is needed for SQLite; "timeout" is its busy-wait on a locked database
if "sqlite" in settings.DATABASE_URL:
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS},
    )
else:
    engine = create_engine(settings.DATABASE_URL, pool_timeout=settings.DB_TIMEOUT_SECONDS)

def get_session():
    with Session(engine) as session:
        yield session

def create_db_and_tables():
    SQLModel.metadata.create_all(engine)

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from app.config.settings import settings


def _engine_kwargs(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        # Worker runs jobs on a thread pool
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


engine = create_engine(
    str(settings.DATABASE_URL),
    echo=False,
    **_engine_kwargs(str(settings.DATABASE_URL)),
)

SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


def get_sync_session():
    """Yield a database session, rolling back on error"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

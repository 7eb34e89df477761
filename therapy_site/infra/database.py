from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from therapy_site.config.settings import config
from therapy_site.models.database import Base


def build_engine(url: str, echo: bool = False):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=echo, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(config.database.url, config.database.echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Session factory for handlers that fan out reads across threads"""
    return SessionLocal

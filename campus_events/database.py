from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from campus_events.core import config

IN_MEMORY_SQLITE_URLS = {"sqlite://", "sqlite:///:memory:"}


def build_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url)

    if url in IN_MEMORY_SQLITE_URLS:
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, connect_args={"check_same_thread": False})


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    # Model modules register their tables on Base when imported.
    from campus_events.models import event, user  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)

from sqlmodel import create_engine, SQLModel, Session
from typing import Generator
import os

from spacesync.core.config import settings

DATABASE_URL = settings.database_url


def _build_engine(url: str):
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=True if os.getenv("DEBUG") else False,
            connect_args={"check_same_thread": False}
        )
    return create_engine(
        url,
        echo=True if os.getenv("DEBUG") else False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600
    )


engine = _build_engine(DATABASE_URL)

def create_db_and_tables():
    # Register the table classes on SQLModel.metadata
    import spacesync.models.sync  # noqa: F401
    SQLModel.metadata.create_all(engine)

def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session

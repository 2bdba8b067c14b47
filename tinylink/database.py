import os
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Explicitly load .env from project root (parent of tinylink/)
ENV_PATH = Path(__file__).parent.parent / ".env"
load_dotenv(ENV_PATH)
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

Base = declarative_base()


def get_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if ENVIRONMENT == "prod":
        raise RuntimeError("DATABASE_URL must be set in production")
    # SQLite for local dev, stored next to the package folder
    db_path = Path(__file__).parent.parent / "tinylink_dev.db"
    return f"sqlite:///{db_path}"


def make_engine(url: str | None = None):
    url = url or get_database_url()
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty db
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

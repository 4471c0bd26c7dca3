import os
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")


def build_engine(environment: str = ENVIRONMENT):
    url = os.getenv("DATABASE_URL")
    if environment == "prod":
        if not url:
            raise RuntimeError("DATABASE_URL must be set in production")
        return create_engine(
            url,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,
        )
    url = url or f"sqlite:///{PROJECT_ROOT / 'tinylink_dev.db'}"
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    # sessions hop threads under FastAPI's threadpool
    return create_engine(url, connect_args={"check_same_thread": False})


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

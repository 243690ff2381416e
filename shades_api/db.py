# shades_api/db.py

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger("shades_api.db")

# A small check to ensure it's not None
if DATABASE_URL is None:
    raise ValueError("DATABASE_URL environment variable not set. Please create a .env file.")

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    echo=SQL_ECHO,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

class Base(DeclarativeBase):
    pass

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    """
    Create missing tables and make sure the database answers.
    Raises whatever the driver raises when the connection is broken.
    """
    # models must be imported so their tables are registered on Base.metadata
    from . import models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    with bind.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connected")

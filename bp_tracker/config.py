"""
configuration module for application settings and database connection.

loads environment variables and provides database engine/session management.
"""

import logging
import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

# load environment variables from .env file
load_dotenv()


class Config:
    """application configuration class."""

    # database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///readings.db")

    # pagination for the readings list
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))

    # logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # flask settings
    FLASK_PORT: int = int(os.getenv("FLASK_PORT", "5000"))
    FLASK_DEBUG: bool = os.getenv("FLASK_DEBUG", "True").lower() == "true"


def build_engine(database_url: str, echo: bool = False):
    """
    create a sqlalchemy engine for the given url.

    args:
        database_url: sqlalchemy database url
        echo: log sql statements

    returns:
        sqlalchemy Engine
    """
    connect_args = {"check_same_thread": False} if "sqlite" in database_url else {}
    return create_engine(database_url, echo=echo, connect_args=connect_args)


# database engine and session factory
engine = build_engine(Config.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db_session() -> Session:
    """
    create and return a new database session.

    returns:
        sqlalchemy Session object
    """
    return SessionLocal()


def init_db(bind=None) -> None:
    """create the readings table if it does not exist yet."""
    from bp_tracker.models.readings import Base

    Base.metadata.create_all(bind=bind or engine)


def configure_logging(level: str = Config.LOG_LEVEL) -> None:
    """
    configure root logging once for the process.

    args:
        level: log level name (e.g. "INFO", "DEBUG")
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

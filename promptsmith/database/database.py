"""Database connection and session management.

Each project keeps its own SQLite file at <root>/.promptsmith/promptsmith.db.
A command opens one session, does its work and closes it:

    with open_db(project_root) as db:
        store = PromptStore(db)
        ...
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from ..config import CONFIG_DIR, db_path, sql_echo_enabled
from ..errors import ProjectNotFoundError
from .models import Base

logger = logging.getLogger(__name__)


def create_db_engine(project_root: Union[str, Path]) -> Engine:
    """Create the SQLite engine for a project."""
    database_url = f"sqlite:///{db_path(project_root)}"
    return create_engine(
        database_url,
        echo=sql_echo_enabled()  # PROMPTSMITH_SQL_ECHO=1 for SQL debugging
    )


@contextmanager
def open_db(project_root: Union[str, Path]) -> Iterator[Session]:
    """Open a session on an existing project database.

    The session is closed and the engine disposed on every exit path.
    """
    engine = create_db_engine(project_root)
    SessionLocal = sessionmaker(
        autoflush=False, expire_on_commit=False, bind=engine
    )
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


def init_db(project_root: Union[str, Path]) -> None:
    """Create the config directory and all tables (idempotent)."""
    config_dir = Path(project_root) / CONFIG_DIR
    config_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(project_root)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
    logger.debug(f"Schema ready at {db_path(project_root)}")


def find_project_root(start: Union[str, Path, None] = None) -> Path:
    """Walk up from start (default: cwd) to the directory holding .promptsmith/.

    Raises:
        ProjectNotFoundError: If no parent contains a .promptsmith directory
    """
    current = Path(start or Path.cwd()).resolve()
    while True:
        if (current / CONFIG_DIR).is_dir():
            return current
        if current.parent == current:
            raise ProjectNotFoundError(
                "not a promptsmith project (or any parent): .promptsmith directory not found"
            )
        current = current.parent

"""Engine and session wiring. DATABASE_URL and SQL_ECHO come from the environment or .env."""
import os
from pathlib import Path
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./matchday.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")


def _sqlite_file(url: str) -> Optional[Path]:
    """Path of a file-backed sqlite database, None for other backends and :memory:."""
    if not url.startswith("sqlite") or ":memory:" in url:
        return None
    return Path(url.split(":///", 1)[-1])


_db_file = _sqlite_file(DATABASE_URL)
if _db_file is not None:
    _db_file.parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=SQL_ECHO,
    # request handlers and the startup hook run on different threads
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)


def get_session() -> Generator[Session, None, None]:
    """Request-scoped session; route handlers commit or roll back themselves."""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Create missing tables. Production schemas are managed by alembic."""
    import matchday.models  # noqa: F401  registers every table on SQLModel.metadata

    SQLModel.metadata.create_all(engine)

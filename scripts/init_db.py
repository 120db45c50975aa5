"""Creates every table of the schema and seeds the learning-subject catalog.

Usage:
    python scripts/init_db.py                 # uses settings.database_url
    python scripts/init_db.py --db-url sqlite+aiosqlite:///./dev.db
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy import select

# This file lives in <project_root>/scripts/
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.peer_connect_backend.common.config import settings
from src.peer_connect_backend.database.engine import build_engine, build_session_factory
from src.peer_connect_backend.database.models import Base, LearningSubjects

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_SUBJECTS = [
    "Accounting",
    "Biology",
    "Calculus",
    "Chemistry",
    "Computer Science",
    "Economics",
    "English",
    "History",
    "Mathematics",
    "Physics",
    "Statistics",
]


async def init_db(db_url: str):
    engine = build_engine(db_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created (existing tables were left untouched).")

        session_factory = build_session_factory(engine)
        async with session_factory() as session:
            existing = set((await session.execute(select(LearningSubjects.name))).scalars().all())
            missing = [name for name in DEFAULT_SUBJECTS if name not in existing]
            session.add_all(LearningSubjects(name=name) for name in missing)
            await session.commit()
        logger.info(f"Seeded {len(missing)} learning subject(s).")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--db-url", default=None, help="Database URL; defaults to the configured one.")
    args = parser.parse_args()
    asyncio.run(init_db(args.db_url or settings.database_url))

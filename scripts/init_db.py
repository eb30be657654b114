"""Create (or with --reset, recreate) the points engine schema."""
import argparse
import logging

from peachy.core.config import settings
from peachy.db.base import Base
from peachy.db.session import make_engine

logger = logging.getLogger("peachy.init_db")


def init(url: str = settings.DATABASE_URL, *, reset: bool = False) -> None:
    engine = make_engine(url)
    if reset:
        Base.metadata.drop_all(bind=engine)
        logger.warning(f"Dropped all tables on {engine.url!r}")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")
    engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", default=settings.DATABASE_URL, help="database URL (default: PEACHY_DATABASE_URL)")
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    logging.basicConfig(level=settings.LOG_LEVEL)
    init(args.url, reset=args.reset)
    print("Database schema created.")

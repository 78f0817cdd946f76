"""Database initialization script."""
from typing import Optional
from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

from mealcart.models import Base, User
from mealcart.db.session import SessionLocal, engine as default_engine
from mealcart.utils.logger import get_logger

logger = get_logger(__name__)


def init_db(engine: Optional[Engine] = None, seed_user: bool = True) -> None:
    """Create all tables and, optionally, a default cart owner."""
    session_factory = SessionLocal if engine is None else sessionmaker(bind=engine)
    engine = engine or default_engine

    Base.metadata.create_all(engine)
    logger.info("Database tables created", url=str(engine.url))

    if not seed_user:
        return

    with session_factory() as session:
        test_user = session.get(User, 1)
        if not test_user:
            session.add(User(id=1))
            session.commit()
            logger.info("Created default cart owner", user_id=1)
        else:
            logger.info("Default cart owner already exists", user_id=1)


if __name__ == "__main__":
    init_db()

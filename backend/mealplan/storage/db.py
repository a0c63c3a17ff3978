from sqlalchemy import text

from sqlmodel import SQLModel, Session, create_engine

from mealplan.config import settings
from mealplan.logging import get_logger

logger = get_logger(__name__)

engine = create_engine(settings.postgres_dsn, pool_pre_ping=True)


def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)
    _migrate_meal_plan_status()


def _migrate_meal_plan_status() -> None:
    """Add status/candidates columns if missing (plans stored before candidate drafts existed)."""
    if engine.dialect.name != "postgresql":
        return
    try:
        with engine.connect() as conn:
            conn.execute(text("ALTER TABLE mealplan ADD COLUMN IF NOT EXISTS status VARCHAR(16) DEFAULT 'active'"))
            conn.execute(text("ALTER TABLE mealplan ADD COLUMN IF NOT EXISTS candidates JSONB DEFAULT NULL"))
            conn.commit()
    except Exception as e:
        logger.warning("db.migrate_failed name=meal_plan_status error=%s", e)


def get_session() -> Session:
    return Session(engine)

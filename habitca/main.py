"""Main entry point for the habitca progression engine"""
import asyncio
import logging
from datetime import date
from typing import Optional

from habitca.config import (
    DATABASE_URL,
    LOG_LEVEL,
    STORAGE_BACKEND,
    VALID_BACKENDS,
    validate_config,
)
from habitca.db.connection import Database
from habitca.db.memory_store import InMemoryHabitStore
from habitca.db.postgres_store import PostgresHabitStore
from habitca.db.schema import init_schema
from habitca.gamification.achievement_catalog import DEFAULT_ACHIEVEMENTS
from habitca.observability.metrics import init_metrics
from habitca.services.container import ServiceContainer

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL, logging.INFO)
)

logger = logging.getLogger(__name__)


async def bootstrap(backend: Optional[str] = None) -> ServiceContainer:
    """
    Build a ready-to-use service container

    Args:
        backend: 'postgres' or 'memory' (defaults to STORAGE_BACKEND)

    Returns:
        ServiceContainer sharing one store and one event bus
    """
    logger.info("Validating configuration...")
    validate_config()

    backend = (backend or STORAGE_BACKEND).lower()
    if backend not in VALID_BACKENDS:
        raise ValueError(
            f"Unknown storage backend '{backend}'; expected one of: {', '.join(sorted(VALID_BACKENDS))}"
        )
    db = None

    if backend == "postgres":
        logger.info("Initializing database connection pool...")
        db = Database(DATABASE_URL)
        await db.init_pool()
        await init_schema(db)
        store = PostgresHabitStore(db)
    else:
        logger.info("Using in-memory storage; nothing will be persisted")
        store = InMemoryHabitStore()

    seeded = await store.seed_achievements(DEFAULT_ACHIEVEMENTS)
    logger.info(f"Achievement catalog ready ({seeded} new)")

    init_metrics()

    return ServiceContainer(store=store, db=db)


async def shutdown(container: ServiceContainer) -> None:
    if container.db is not None:
        logger.info("Closing database connection...")
        await container.db.close_pool()
    logger.info("Shutdown complete")


async def main() -> None:
    """Bootstrap, seed sample habits and print a progress summary"""
    container = None
    try:
        container = await bootstrap()
        await container.habit_service.seed_sample_habits()

        today = date.today()
        habits = await container.habit_service.get_habits()
        progress = await container.completion_service.get_xp_progress()
        stats = await container.store.get_user_stats()

        logger.info(
            f"{len(habits)} active habits, level {stats.level} "
            f"({progress.current}/{progress.needed} XP, {progress.percentage:.0f}%)"
        )
        for habit in habits:
            streak = await container.completion_service.get_current_streak(habit.id, today)
            logger.info(f"{habit.emoji} {habit.title}: {streak} day streak")

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        if container:
            await shutdown(container)


if __name__ == "__main__":
    asyncio.run(main())

from pathlib import Path

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker
from careeros.config import get_settings
from careeros.utils.logger import logger

settings = get_settings()

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    pool_pre_ping=True,  # Detect and recycle stale/broken connections
    pool_recycle=300,  # Recycle connections every 5 minutes
)

# Create session factory
AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for models
Base = declarative_base()

# Initialize database (create tables)
async def init_db(db_engine=None):
    """Create all database tables"""
    # Import models to register them with Base
    from careeros.models import enrollment, user_project, user_soft_skill
    from careeros.models import user_achievement, quiz_result, community_post

    db_engine = db_engine or engine
    db_url = str(db_engine.url)
    if db_url.startswith("sqlite") and db_engine.url.database:
        Path(db_engine.url.database).parent.mkdir(parents=True, exist_ok=True)

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created")

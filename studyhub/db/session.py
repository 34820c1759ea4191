from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from studyhub.core.config import settings
from studyhub.db.base import Base, load_models
from studyhub.logging import get_logger

logger = get_logger(__name__)

engine = create_async_engine(settings.DATABASE_URL, future=True, echo=False, pool_pre_ping=True)
SessionAsync = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables() -> None:
    load_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Document store tables ready")

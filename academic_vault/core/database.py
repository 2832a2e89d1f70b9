from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from .config import settings
from typing import Optional

# Create async engine (only if database_url is provided)
engine: Optional[object] = None
if settings.database_url:
    engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        pool_recycle=300,
    )

# Create async session factory (only if engine exists)
AsyncSessionLocal: Optional[async_sessionmaker] = None
if engine:
    AsyncSessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

def get_session_factory() -> async_sessionmaker:
    """Session factory handed to the SQL data gateway"""
    if not AsyncSessionLocal:
        raise RuntimeError(
            "Database not configured. Please set DATABASE_URL in your .env file. "
            "Get it from Supabase Dashboard → Settings → Database → Connection string"
        )
    return AsyncSessionLocal

async def init_db():
    """Initialize database tables"""
    if not engine:
        raise RuntimeError("Database engine not initialized. Set DATABASE_URL in .env")
    async with engine.begin() as conn:
        # Import all models to ensure they are registered
        from academic_vault.models import Base
        await conn.run_sync(Base.metadata.create_all)

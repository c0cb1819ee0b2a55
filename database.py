from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from dotenv import load_dotenv
import logging

from config import settings

load_dotenv()

# Keep SQLAlchemy quiet unless something goes wrong
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

# CRITICAL: Never hardcode production credentials. Always use environment variables.
# Default is a local SQLite file for development; production uses postgresql+asyncpg
DATABASE_URL = settings.DATABASE_URL

ECHO_SQL = (settings.ENVIRONMENT == "development" and settings.DEBUG)

# Connection pool configuration (ignored by SQLite, which has no server-side pool)
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 5  # Seconds to wait for a connection
POOL_RECYCLE = 3600  # Recycle connections after an hour

logger = logging.getLogger(__name__)

try:
    engine_kwargs = {"echo": ECHO_SQL, "future": True}
    if DATABASE_URL.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs.update(
            pool_pre_ping=True,  # Test connections before using them
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
        )

    engine = create_async_engine(DATABASE_URL, **engine_kwargs)
    logger.info(f"Database engine created for {engine.url.get_backend_name()} (echo_sql={ECHO_SQL})")
except Exception as e:
    logger.error(f"Failed to create database engine: {e}", exc_info=True)
    raise

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for models
Base = declarative_base()

# Dependency for FastAPI routes
async def get_db():
    """
    Dependency function to get database session
    Usage in FastAPI routes:
        async def my_route(db: AsyncSession = Depends(get_db)):

    The session belongs to the request: it is committed when the handler
    succeeds, rolled back when it raises, and closed on every path.
    """
    session = None
    try:
        session = AsyncSessionLocal()
        yield session
        await session.commit()
    except Exception as e:
        if session:
            await session.rollback()
        logger.error(f"Database error in session: {str(e)}")
        raise
    finally:
        if session:
            try:
                await session.close()
            except Exception as close_error:
                logger.warning(f"Error closing session: {close_error}")

# Alias for consistency
get_async_session = get_db

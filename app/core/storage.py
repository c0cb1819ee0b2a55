"""
Bounded storage calls

Services route every database round trip through ``guarded`` so that a slow
or unreachable database surfaces as StorageUnavailable instead of hanging the
request. Integrity errors are left alone: callers decide what a constraint
violation means in their domain.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, DisconnectionError, IntegrityError, InterfaceError, OperationalError

from config import settings
from app.core.error_handling import StorageUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def guarded(operation: Awaitable[T], description: str, timeout: Optional[float] = None) -> T:
    """Await a storage operation with a timeout, mapping infrastructure failures"""
    limit = timeout if timeout is not None else settings.DB_OPERATION_TIMEOUT
    try:
        return await asyncio.wait_for(operation, timeout=limit)
    except IntegrityError:
        raise
    except asyncio.TimeoutError as e:
        logger.error(f"Storage timeout after {limit}s during {description}")
        raise StorageUnavailable(description) from e
    except (OperationalError, InterfaceError, DisconnectionError) as e:
        logger.error(f"Storage failure during {description}: {e}")
        raise StorageUnavailable(description) from e
    except DBAPIError as e:
        if e.connection_invalidated:
            logger.error(f"Storage connection lost during {description}: {e}")
            raise StorageUnavailable(description) from e
        raise

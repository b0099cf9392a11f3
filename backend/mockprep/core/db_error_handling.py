"""
Database error handling for service-layer code.

Endpoints never see raw SQLAlchemy errors: service functions roll back and
re-raise them as DatabaseOperationError, which the generic exception handler
reports with an error_id.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession


logger = logging.getLogger(__name__)


class DatabaseOperationError(Exception):
    """A database operation failed and was rolled back.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception
        message: The formatted error message
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        self.message = message or f"Failed to {operation_name}: {str(original_error)}"
        super().__init__(self.message)


@asynccontextmanager
async def rollback_on_error(
    db: AsyncSession, operation_name: str
) -> AsyncGenerator[None, None]:
    """Roll back the session if the wrapped block raises.

    IntegrityError is re-raised unchanged after rollback so callers can map
    constraint violations to domain errors. Other SQLAlchemy errors become
    DatabaseOperationError; non-database exceptions propagate unchanged.
    """
    try:
        yield
    except IntegrityError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to {operation_name}: {e}", exc_info=True)
        raise DatabaseOperationError(operation_name, e) from e
    except Exception:
        await db.rollback()
        raise

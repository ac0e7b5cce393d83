from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


def backend_error(exc: SQLAlchemyError) -> HTTPException:
    """Surface a data-store failure as a 500 carrying the driver's own message."""
    message = str(getattr(exc, "orig", None) or exc)
    logger.error("Backend error: %s", message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)

import logging
import traceback
from typing import List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class OmniaError(Exception):
    status_code = 400

    def __init__(self, message: str, field: str = "", details: Optional[List[dict]] = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else [{"field": field, "message": message}]

    @property
    def error(self) -> str:
        return type(self).__name__

    def to_detail(self) -> dict:
        return {
            "error": self.error,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(OmniaError):
    status_code = 400


class EmptySetError(ValidationError):
    """Raised when an exam would be composed from a question set with no questions."""


class NotFoundError(OmniaError):
    status_code = 404


class StoreError(OmniaError):
    status_code = 503


async def omnia_error_handler(request: Request, exc: OmniaError):
    if isinstance(exc, StoreError):
        logger.error(f"Store error on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


def store_error(action: str, exc: Exception) -> StoreError:
    """Wrap a backend failure, logging the original traceback."""
    logger.error(f"Error {action}: {str(exc)}")
    logger.error(f"Stack trace: {traceback.format_exc()}")
    return StoreError(f"Error {action}: {str(exc)}")

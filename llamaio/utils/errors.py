# llamaio/utils/errors.py
from typing import Any, Optional

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """HTTPException carrying the envelope message and data"""

    def __init__(self, status_code: int, message: str, data: Optional[Any] = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.data = {} if data is None else data


class MalformedParameter(ApiError):
    """Bad JSON or bad ids in a query parameter"""

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, data)


class ValidationFailed(ApiError):
    """Missing required field, invalid reference or pendingTasks rule violation"""

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, data)


class NotFound(ApiError):
    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(status.HTTP_404_NOT_FOUND, message, data)


class ConflictError(ApiError):
    """Unique index collision; reported as 400"""

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, data)


class UnexpectedStoreError(ApiError):
    """Anything else. 500 on read paths, a generic 400 on write paths."""

    def __init__(
        self,
        message: str = "Unexpected server error.",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        super().__init__(status_code, message)

"""
Translate service-layer DomainErrors into HTTP responses.

Error body: {"error": "<KIND>", "message": "<human readable>"}
"""

from typing import TypeVar

from fastapi import Request, status
from fastapi.responses import JSONResponse

from roomrental.core.errors import DomainError, ErrorKind, Result

T = TypeVar("T")

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ROOM_UNAVAILABLE: status.HTTP_409_CONFLICT,
    ErrorKind.GUEST_LIMIT_EXCEEDED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_DATE_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DATE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.REVIEW_NOT_ALLOWED: status.HTTP_403_FORBIDDEN,
    ErrorKind.DUPLICATE_REVIEW: status.HTTP_409_CONFLICT,
    ErrorKind.FORBIDDEN_ROLE: status.HTTP_403_FORBIDDEN,
    ErrorKind.STORAGE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class ApiError(Exception):
    def __init__(self, error: DomainError):
        super().__init__(error.message)
        self.error = error


def unwrap(result: Result[T]) -> T:
    """Return the result's value or raise ApiError for the exception handler."""
    if not result.ok:
        raise ApiError(result.error)
    return result.value


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_KIND[exc.error.kind],
        content={"error": exc.error.kind.value, "message": exc.error.message},
    )

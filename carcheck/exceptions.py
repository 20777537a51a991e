import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from carcheck.services.exceptions import (
    CarCheckDomainError,
    DuplicateCar,
    DuplicateGrant,
    EmailMismatch,
    Expired,
    Forbidden,
    LastOwnerError,
    NotFound,
    QuotaExceeded,
    Unauthorized,
    UpstreamFailure,
)

logger = logging.getLogger(__name__)

# Most specific classes first: LastOwnerError is also a Forbidden
STATUS_BY_ERROR: list[tuple[type[CarCheckDomainError], int]] = [
    (Unauthorized, 401),
    (LastOwnerError, 409),
    (Forbidden, 403),
    (EmailMismatch, 403),
    (NotFound, 404),
    (DuplicateGrant, 409),
    (DuplicateCar, 409),
    (Expired, 410),
    (QuotaExceeded, 429),
    (UpstreamFailure, 502),
]


class ValidationError(HTTPException):
    def __init__(self, message: str, field: str = None):
        detail = {"error": "validation_error", "message": message}
        if field:
            detail["field"] = field
        super().__init__(status_code=422, detail=detail)


def status_for(exc: CarCheckDomainError) -> int:
    for error_cls, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return 400


async def validation_exception_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "message": exc.detail.get("message", "Validation error"),
            "field": exc.detail.get("field"),
        },
    )


async def domain_exception_handler(request: Request, exc: CarCheckDomainError):
    status_code = status_for(exc)
    logger.info(
        "Domain error on %s: %s",
        request.url.path,
        exc.code,
        extra={"error_code": exc.code, "status_code": status_code},
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": str(exc)},
        headers=headers,
    )

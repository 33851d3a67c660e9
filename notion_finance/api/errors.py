"""Map the domain error taxonomy onto HTTP responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notion_finance.domain.exceptions import FinanceServiceError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "PARSE_ERROR": 422,
    "RATE_LIMITED": 429,
    "TIMEOUT": 503,
    "CONNECTION_ERROR": 503,
    "SERVER_ERROR": 503,
}


def status_for(error: FinanceServiceError) -> int:
    return STATUS_BY_CODE.get(error.code, 500)


async def finance_error_handler(request: Request, exc: FinanceServiceError) -> JSONResponse:
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.warning
    log(
        f"Request failed: {exc.message}",
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "error_code": exc.code,
            "status": status,
        },
    )
    headers = {}
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        headers["Retry-After"] = str(int(retry_after))
    return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request parameters",
            "details": {"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FinanceServiceError, finance_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

"""전역 예외 핸들러.

모든 에러 응답을 {"error_code": "...", "message": "..."} 한 가지 형식으로 맞춘다.
- AppException 계열: 예외가 가진 상태 코드/에러 코드 그대로
- 요청 형식 오류(RequestValidationError): 422 INVALID_PAYLOAD, 필드별 오류는 details
- 그 밖의 예외: 500 INTERNAL_ERROR (스택 트레이스는 로그에만 남긴다)
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import AppException


def _error(status_code: int, error_code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error_code": error_code, "message": message, **extra},
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.error_code}: {exc.message}")
    return _error(exc.status_code, exc.error_code, exc.message)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    message = "; ".join(f"{d['field']}: {d['message']}" for d in details) or "invalid request"
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_PAYLOAD", message, details=details)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"{request.method} {request.url.path} -> unhandled {type(exc).__name__}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

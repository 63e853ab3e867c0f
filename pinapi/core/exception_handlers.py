import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import BaseAPIException, InternalServerError

logger = logging.getLogger("pinapi")


def _describe(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url.path} from {client}"


def _error_body(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> dict:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


def _log(request: Request, kind: str, status_code: int, detail: Any, exc: Exception) -> None:
    line = f"[{kind}] {_describe(request)} -> {status_code}: {detail}"
    if status_code >= 500:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error(f"{line}\n{tb}")
    else:
        logger.warning(line)


async def handle_base_api_exception(request: Request, exc: BaseAPIException):
    """도메인 예외 - detail 이 이미 표준 응답 형태"""
    _log(request, type(exc).__name__, exc.status_code, exc.detail, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.detail)


async def handle_http_exception(request: Request, exc: HTTPException):
    """프레임워크 HTTPException (404 라우트 없음, 405 등)"""
    _log(request, "HTTPException", exc.status_code, exc.detail, exc)
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = _error_body("HTTP_ERROR", str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    """요청 검증 실패 -> 422

    field_validator 가 던진 ValueError 는 ctx 에 예외 객체로 남으므로
    jsonable_encoder 로 직렬화 가능한 형태로 바꿔서 돌려줍니다.
    """
    errors = jsonable_encoder(exc.errors())
    _log(request, "ValidationError", 422, errors, exc)
    return JSONResponse(
        status_code=422,
        content=_error_body("VALIDATION_001", "Validation failed", {"errors": errors}),
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    _log(request, f"Unhandled {type(exc).__name__}", 500, exc, exc)
    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

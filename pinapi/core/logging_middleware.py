import logging
import time
import uuid

from fastapi import HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

# "pinapi" 로거로 보내 JSON 핸들러를 거치도록 함
logger = logging.getLogger("pinapi")

REQUEST_ID_HEADER = "X-Request-ID"


def _level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로그 - 요청 ID 를 응답 헤더로 되돌려줌"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        client = request.client.host if request.client else "-"
        prefix = f"[{request_id}] {request.method} {request.url.path} from {client}"
        start = time.perf_counter()

        logger.info(f"{prefix} started")
        try:
            response = await call_next(request)
        except HTTPException as http_exc:
            logger.log(
                _level_for_status(http_exc.status_code),
                f"{prefix} -> {http_exc.status_code}: {http_exc.detail}",
            )
            raise
        except Exception:
            logger.exception(f"{prefix} unhandled error")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.log(
            _level_for_status(response.status_code),
            f"{prefix} -> {response.status_code} in {duration_ms:.1f}ms",
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

import time
import uuid

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

# 영화 생성은 이미지 업로드를 기다리지 않으므로 이 기준 안에 끝나야 한다.
SLOW_THRESHOLD_MS = 500
REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """요청 단위 로깅.

    - 요청마다 request id를 정해 (헤더로 받았으면 그대로) 로그 컨텍스트에 묶고 응답 헤더로 돌려준다.
      같은 요청에서 남긴 서비스/큐 로그에 모두 같은 id가 찍힌다.
    - 메서드, 경로, 클라이언트 IP, 상태코드, 처리시간(ms)을 한 줄로 기록한다.
      500ms 초과는 WARNING, 5xx는 ERROR.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start = time.perf_counter()

        with logger.contextualize(request_id=request_id):
            response = await call_next(request)

            elapsed_ms = (time.perf_counter() - start) * 1000
            client_ip = request.client.host if request.client else "unknown"
            line = f"{request.method} {request.url.path} | {client_ip} | {response.status_code} | {elapsed_ms:.0f}ms"

            if elapsed_ms > SLOW_THRESHOLD_MS:
                logger.warning(f"{line} (slow)")
            elif response.status_code >= 500:
                logger.error(line)
            else:
                logger.info(line)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

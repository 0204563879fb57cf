import uvicorn
from fastapi import Depends, FastAPI

from core.config import settings
from core.dependencies import get_work_queue
from core.error_handlers import register_exception_handlers
from core.lifespan import lifespan
from core.middleware import RequestLoggingMiddleware
from repository.task_queue import QueueError, WorkQueue, dead_letter_key
from router.cinema_router import router as cinema_router
from router.movie_router import router as movie_router
from router.user_router import router as user_router
from utility.logger import setup_logger
import model.user  # noqa: F401 — 테이블 등록
import model.cinema  # noqa: F401 — 테이블 등록
import model.movie  # noqa: F401 — 테이블 등록

setup_logger(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="영화관/영화 관리 API. 영화 이미지는 큐를 거쳐 워커가 외부 저장소에 올린다",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(user_router)
app.include_router(cinema_router)
app.include_router(movie_router)


@app.get("/health")
def health(queue: WorkQueue = Depends(get_work_queue)):
    """서버 상태 + 이미지 큐 적재량. Redis에 닿지 않으면 queues는 null."""
    try:
        queues = {
            name: {
                "pending": queue.length(name),
                "dead": queue.length(dead_letter_key(name)),
            }
            for name in (settings.UPLOAD_QUEUE_NAME, settings.DELETE_QUEUE_NAME)
        }
    except QueueError:
        queues = None

    return {
        "status": "ok" if queues is not None else "degraded",
        "version": settings.APP_VERSION,
        "queues": queues,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        access_log=False,
    )

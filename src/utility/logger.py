import sys

from loguru import logger

# 워커가 API 프로세스 안에서 스레드로 돌 수 있으므로 스레드 이름을 함께 찍는다.
TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<yellow>{thread.name}</yellow> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def setup_logger(level: str = "INFO", json_logs: bool = False):
    """Loguru 설정. API / 워커 프로세스 시작 시 한 번 호출.

    json_logs=True면 레코드 전체를 한 줄 JSON으로 출력한다. (serialize)
    """
    logger.remove()
    logger.configure(extra={"request_id": "-"})
    if json_logs:
        logger.add(sys.stderr, level=level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, level=level.upper(), format=TEXT_FORMAT)
    return logger

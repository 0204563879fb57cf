import time
from contextlib import contextmanager
from dataclasses import dataclass

from loguru import logger


@dataclass
class Elapsed:
    seconds: float = 0.0


@contextmanager
def timer(label: str, slow_after: float | None = None):
    """블록 실행 시간을 로그로 남긴다.

        with timer("image store upload", slow_after=10) as t:
            ...
        t.seconds

    예외로 빠져나가도 기록된다. slow_after(초)를 넘기면 WARNING, 아니면 DEBUG.
    """
    elapsed = Elapsed()
    start = time.perf_counter()
    try:
        yield elapsed
    finally:
        elapsed.seconds = time.perf_counter() - start
        slow = slow_after is not None and elapsed.seconds > slow_after
        logger.log("WARNING" if slow else "DEBUG", f"[{label}] {elapsed.seconds:.3f}s{' (slow)' if slow else ''}")

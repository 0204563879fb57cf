"""Redis 리스트 기반 작업 큐.

큐 하나당 Redis 키 세 개를 쓴다.

    <name>             대기 중인 작업 (head에서 꺼내고 tail에 넣는다 → FIFO)
    <name>:processing  꺼내서 처리 중인 작업
    <name>:dead        더 이상 재시도하지 않는 작업

dequeue는 LMOVE로 대기 리스트의 head를 processing 리스트로 원자적으로 옮긴다.
작업은 ack / retry / dead_letter 중 하나가 호출될 때 processing에서 빠진다.
워커가 처리 도중 죽으면 작업이 processing에 남고, 다음 워커 기동 시
restore_inflight가 대기 리스트 head로 되돌린다.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

import redis
from loguru import logger
from pydantic import ValidationError

from model.task import QueuedTask

T = TypeVar("T", bound=QueuedTask)


class QueueError(Exception):
    """큐 저장소(Redis) 통신 실패 또는 직렬화 실패."""


class TaskDecodeError(QueueError):
    """큐에서 꺼낸 엔트리가 작업 레코드로 해석되지 않음. (dead 리스트로 이동됨)"""


@dataclass(frozen=True)
class Delivery(Generic[T]):
    """dequeue 결과. raw는 processing 리스트에서 제거할 때 쓰는 원본 문자열."""

    queue_name: str
    raw: str
    task: T


def processing_key(queue_name: str) -> str:
    return f"{queue_name}:processing"


def dead_letter_key(queue_name: str) -> str:
    return f"{queue_name}:dead"


class WorkQueue:
    def __init__(self, client: redis.Redis):
        self.client = client

    def enqueue(self, queue_name: str, task: QueuedTask) -> None:
        """작업을 직렬화해서 큐 tail에 추가한다."""
        try:
            data = task.model_dump_json()
        except (TypeError, ValueError) as e:
            raise QueueError(f"failed to serialize task {task.id}: {e}") from e

        try:
            self.client.rpush(queue_name, data)
        except redis.RedisError as e:
            raise QueueError(f"failed to push task {task.id} to {queue_name}: {e}") from e

    def dequeue(self, queue_name: str, model: type[T]) -> Delivery[T] | None:
        """큐 head에서 작업 하나를 꺼낸다. 비어 있으면 None. (블로킹하지 않음)"""
        try:
            raw = self.client.lmove(queue_name, processing_key(queue_name), "LEFT", "RIGHT")
        except redis.RedisError as e:
            raise QueueError(f"failed to pop from {queue_name}: {e}") from e

        if raw is None:
            return None

        try:
            task = model.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Malformed entry in {queue_name}, moving to dead letter: {e}")
            self._move(queue_name, raw, dead_letter_key(queue_name))
            raise TaskDecodeError(f"failed to decode task from {queue_name}") from e

        return Delivery(queue_name=queue_name, raw=raw, task=task)

    def ack(self, delivery: Delivery) -> None:
        """처리가 끝난 작업을 processing 리스트에서 제거한다."""
        try:
            self.client.lrem(processing_key(delivery.queue_name), 1, delivery.raw)
        except redis.RedisError as e:
            raise QueueError(f"failed to ack task {delivery.task.id}: {e}") from e

    def retry(self, delivery: Delivery[T]) -> T:
        """attempts를 올린 복사본을 큐 tail에 다시 넣고 원본을 제거한다. (한 트랜잭션)"""
        task = delivery.task.next_attempt()
        try:
            data = task.model_dump_json()
        except (TypeError, ValueError) as e:
            raise QueueError(f"failed to serialize task {task.id}: {e}") from e

        self._move(delivery.queue_name, delivery.raw, delivery.queue_name, data)
        return task

    def dead_letter(self, delivery: Delivery) -> None:
        """작업을 dead 리스트로 옮긴다. 다시 처리되지 않는다."""
        self._move(delivery.queue_name, delivery.raw, dead_letter_key(delivery.queue_name))

    def restore_inflight(self, queue_name: str) -> int:
        """processing에 남은 작업을 대기 리스트 head로 되돌리고 개수를 반환한다.

        처리 중이던 워커가 죽었을 때를 위한 복구용.
        같은 큐를 소비하는 워커가 동시에 살아 있으면 그 워커의 작업도 되돌리므로
        워커 기동 시점에만 호출한다.
        """
        restored = 0
        try:
            while self.client.lmove(processing_key(queue_name), queue_name, "RIGHT", "LEFT"):
                restored += 1
        except redis.RedisError as e:
            raise QueueError(f"failed to restore in-flight tasks of {queue_name}: {e}") from e
        return restored

    def length(self, queue_name: str) -> int:
        try:
            return self.client.llen(queue_name)
        except redis.RedisError as e:
            raise QueueError(f"failed to read length of {queue_name}: {e}") from e

    def dead_letters(self, queue_name: str) -> list[str]:
        try:
            return self.client.lrange(dead_letter_key(queue_name), 0, -1)
        except redis.RedisError as e:
            raise QueueError(f"failed to read dead letters of {queue_name}: {e}") from e

    def _move(self, queue_name: str, raw: str, target_key: str, data: str | None = None) -> None:
        """processing의 raw를 지우고 target_key tail에 data(없으면 raw)를 넣는다.

        MULTI/EXEC로 묶어서, 중간에 끊겨도 작업이 두 곳에 남지 않는다.
        """
        try:
            with self.client.pipeline(transaction=True) as pipe:
                pipe.rpush(target_key, data if data is not None else raw)
                pipe.lrem(processing_key(queue_name), 1, raw)
                pipe.execute()
        except redis.RedisError as e:
            raise QueueError(f"failed to move entry to {target_key}: {e}") from e

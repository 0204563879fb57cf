"""Redis 리스트 작업 큐 테스트. (FakeRedis 사용)"""

import uuid

import pytest
import redis

from conftest import BrokenRedis, FakeRedis
from model.task import DeleteTask, UploadTask
from repository.task_queue import (
    QueueError,
    TaskDecodeError,
    WorkQueue,
    dead_letter_key,
    processing_key,
)

QUEUE = "test_queue"


def _upload_task(image=b"\x00\x01binary\xff") -> UploadTask:
    return UploadTask(movie_id=uuid.uuid4(), user_id=uuid.uuid4(), image=image)


def test_fifo_order(work_queue):
    """먼저 넣은 작업이 먼저 나온다."""
    tasks = [DeleteTask(external_id=f"img-{i}") for i in range(3)]
    for task in tasks:
        work_queue.enqueue(QUEUE, task)

    out = [work_queue.dequeue(QUEUE, DeleteTask).task.external_id for _ in range(3)]
    assert out == ["img-0", "img-1", "img-2"]


def test_upload_task_survives_serialization(work_queue):
    """이미지 바이트(base64)와 id가 그대로 복원된다."""
    task = _upload_task()
    work_queue.enqueue(QUEUE, task)

    delivery = work_queue.dequeue(QUEUE, UploadTask)
    assert delivery.task == task
    assert delivery.task.image == b"\x00\x01binary\xff"


def test_empty_queue_returns_none(work_queue):
    assert work_queue.dequeue(QUEUE, DeleteTask) is None


def test_dequeue_moves_to_processing(work_queue, redis_client):
    work_queue.enqueue(QUEUE, DeleteTask(external_id="a"))
    delivery = work_queue.dequeue(QUEUE, DeleteTask)

    assert work_queue.length(QUEUE) == 0
    assert redis_client.lrange(processing_key(QUEUE), 0, -1) == [delivery.raw]

    work_queue.ack(delivery)
    assert redis_client.llen(processing_key(QUEUE)) == 0


def test_retry_requeues_at_tail_with_attempts(work_queue, redis_client):
    work_queue.enqueue(QUEUE, DeleteTask(external_id="first"))
    work_queue.enqueue(QUEUE, DeleteTask(external_id="second"))
    delivery = work_queue.dequeue(QUEUE, DeleteTask)

    retried = work_queue.retry(delivery)

    assert retried.id == delivery.task.id
    assert retried.attempts == 1
    assert redis_client.llen(processing_key(QUEUE)) == 0
    assert work_queue.dequeue(QUEUE, DeleteTask).task.external_id == "second"
    assert work_queue.dequeue(QUEUE, DeleteTask).task.attempts == 1


def test_dead_letter(work_queue, redis_client):
    work_queue.enqueue(QUEUE, DeleteTask(external_id="a"))
    delivery = work_queue.dequeue(QUEUE, DeleteTask)

    work_queue.dead_letter(delivery)

    assert work_queue.dead_letters(QUEUE) == [delivery.raw]
    assert redis_client.llen(processing_key(QUEUE)) == 0
    assert work_queue.dequeue(QUEUE, DeleteTask) is None


class FailingExecRedis(FakeRedis):
    """MULTI/EXEC가 적용 전에 끊기는 Redis."""

    def pipeline(self, transaction=True):
        pipe = super().pipeline(transaction)

        def _fail():
            raise redis.ConnectionError("connection reset during EXEC")

        pipe.execute = _fail
        return pipe


@pytest.mark.parametrize("action", ["retry", "dead_letter"])
def test_failed_transfer_leaves_task_in_one_place(action):
    """이동 도중 연결이 끊겨도 작업이 대기 리스트와 processing 양쪽에 남지 않는다."""
    client = FailingExecRedis()
    queue = WorkQueue(client)
    queue.enqueue(QUEUE, DeleteTask(external_id="a"))
    delivery = queue.dequeue(QUEUE, DeleteTask)

    with pytest.raises(QueueError):
        getattr(queue, action)(delivery)

    assert client.llen(QUEUE) == 0
    assert client.llen(dead_letter_key(QUEUE)) == 0
    assert client.lrange(processing_key(QUEUE), 0, -1) == [delivery.raw]

    # 다음 기동 때 한 번만 복구된다
    assert queue.restore_inflight(QUEUE) == 1
    assert queue.dequeue(QUEUE, DeleteTask).task.attempts == 0
    assert queue.dequeue(QUEUE, DeleteTask) is None


def test_malformed_entry_goes_to_dead_letter(work_queue, redis_client):
    """해석할 수 없는 엔트리는 dead 리스트로 옮기고 TaskDecodeError."""
    redis_client.rpush(QUEUE, "{not json")
    work_queue.enqueue(QUEUE, DeleteTask(external_id="ok"))

    with pytest.raises(TaskDecodeError):
        work_queue.dequeue(QUEUE, DeleteTask)

    assert redis_client.lrange(dead_letter_key(QUEUE), 0, -1) == ["{not json"]
    assert work_queue.dequeue(QUEUE, DeleteTask).task.external_id == "ok"


def test_restore_inflight_puts_tasks_back_in_order(work_queue):
    """처리 중 죽은 작업은 대기 리스트 head로 원래 순서대로 돌아간다."""
    for name in ("a", "b", "c"):
        work_queue.enqueue(QUEUE, DeleteTask(external_id=name))
    work_queue.dequeue(QUEUE, DeleteTask)
    work_queue.dequeue(QUEUE, DeleteTask)

    assert work_queue.restore_inflight(QUEUE) == 2
    out = [work_queue.dequeue(QUEUE, DeleteTask).task.external_id for _ in range(3)]
    assert out == ["a", "b", "c"]


def test_redis_failure_raises_queue_error():
    queue = WorkQueue(BrokenRedis())

    with pytest.raises(QueueError):
        queue.enqueue(QUEUE, DeleteTask(external_id="a"))
    with pytest.raises(QueueError):
        queue.dequeue(QUEUE, DeleteTask)
    with pytest.raises(QueueError):
        queue.length(QUEUE)

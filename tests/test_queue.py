"""Tests for the Redis Streams consumer and producer using an in-memory fake."""

import json

import pytest
from redis.exceptions import ResponseError

from bulk_uploader.config import QueueConfig
from bulk_uploader.queue import BulkUploadConsumer, BulkUploadProducer, ensure_consumer_group


class FakeRedis:
    """Just enough of the stream commands for the consumer and producer."""

    def __init__(self):
        self.groups: set[tuple[str, str]] = set()
        self.pending: list[tuple[str, dict[str, str]]] = []
        self.acked: list[str] = []
        self.added: list[tuple[str, dict[str, str]]] = []

    def xgroup_create(self, name, groupname, id="$", mkstream=False):
        if (name, groupname) in self.groups:
            raise ResponseError("BUSYGROUP Consumer Group name already exists")
        self.groups.add((name, groupname))

    def xreadgroup(self, groupname, consumername, streams, count=None, block=None):
        if not self.pending:
            return []
        (stream,) = streams
        batch, self.pending = self.pending[:count], self.pending[count:]
        return [[stream, batch]]

    def xack(self, name, groupname, *ids):
        self.acked.extend(ids)
        return len(ids)

    def xadd(self, name, fields, maxlen=None, approximate=True):
        message_id = f"{len(self.added) + 1}-0"
        self.added.append((name, fields))
        return message_id


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.fixture
def queue_config():
    return QueueConfig(stream="uploads", group="workers", consumer_name="worker-1", count=10)


class TestEnsureConsumerGroup:
    def test_existing_group_is_fine(self, redis):
        ensure_consumer_group(redis, "uploads", "workers")
        ensure_consumer_group(redis, "uploads", "workers")
        assert redis.groups == {("uploads", "workers")}

    def test_other_errors_propagate(self):
        class Broken(FakeRedis):
            def xgroup_create(self, *args, **kwargs):
                raise ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")

        with pytest.raises(ResponseError):
            ensure_consumer_group(Broken(), "uploads", "workers")


class TestBulkUploadConsumer:
    """Tests for consume_once() and message handling."""

    def test_hands_payload_to_handler_and_acks(self, redis, queue_config):
        received = []
        redis.pending = [("1-0", {"payload": '{"documents": []}'}), ("2-0", {"payload": "[]"})]
        consumer = BulkUploadConsumer(redis, queue_config, received.append)

        assert consumer.consume_once() == 2
        assert received == ['{"documents": []}', "[]"]
        assert redis.acked == ["1-0", "2-0"]

    def test_handler_failure_still_acks(self, redis, queue_config):
        def explode(_payload):
            raise RuntimeError("pipeline blew up")

        redis.pending = [("1-0", {"payload": "{}"})]
        consumer = BulkUploadConsumer(redis, queue_config, explode)

        assert consumer.consume_once() == 1
        assert redis.acked == ["1-0"]

    def test_message_without_payload_is_dropped(self, redis, queue_config):
        received = []
        redis.pending = [("1-0", {"other": "x"})]
        consumer = BulkUploadConsumer(redis, queue_config, received.append)

        consumer.consume_once()

        assert received == []
        assert redis.acked == ["1-0"]

    def test_empty_read(self, redis, queue_config):
        consumer = BulkUploadConsumer(redis, queue_config, lambda payload: None)
        assert consumer.consume_once() == 0

    def test_run_forever_stops(self, redis, queue_config):
        consumer = BulkUploadConsumer(redis, queue_config, lambda payload: consumer.stop())
        redis.pending = [("1-0", {"payload": "[]"})]

        consumer.run_forever()

        assert ("uploads", "workers") in redis.groups
        assert redis.acked == ["1-0"]

    def test_generated_consumer_name(self, redis):
        consumer = BulkUploadConsumer(redis, QueueConfig(), lambda payload: None)
        assert consumer.consumer_name.startswith("bulk-uploader-")


class TestBulkUploadProducer:
    def test_publishes_dict_as_json(self, redis):
        producer = BulkUploadProducer(redis, "uploads")

        message_id = producer.publish({"documents": [{"filePath": "a.pdf"}]})

        assert message_id == "1-0"
        stream, fields = redis.added[0]
        assert stream == "uploads"
        assert json.loads(fields["payload"]) == {"documents": [{"filePath": "a.pdf"}]}

    def test_publishes_string_unchanged(self, redis):
        BulkUploadProducer(redis, "uploads").publish('{"files": []}')
        assert redis.added[0][1] == {"payload": '{"files": []}'}

    def test_round_trip_through_consumer(self, redis, queue_config):
        received = []
        BulkUploadProducer(redis, "uploads").publish([{"filePath": "a.pdf"}])
        redis.pending = [("1-0", fields) for _stream, fields in redis.added]

        BulkUploadConsumer(redis, queue_config, received.append).consume_once()

        assert json.loads(received[0]) == [{"filePath": "a.pdf"}]

"""Consume upload requests from a Redis stream and run them through the pipeline."""

import logging
import threading
from collections.abc import Callable
from typing import Any

from redis import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from bulk_uploader.config import QueueConfig
from bulk_uploader.queue.client import consumer_name_for, ensure_consumer_group

logger = logging.getLogger(__name__)

PAYLOAD_FIELD = "payload"
RECONNECT_DELAY_SECONDS = 5.0

PayloadHandler = Callable[[str], Any]


class BulkUploadConsumer:
    """
    Reads one JSON manifest per stream message and hands it to ``handler``.

    A message is always acknowledged once handled, whether the run succeeded
    or not; redelivery and dead-lettering are left to whoever operates the
    stream.
    """

    def __init__(self, redis: Redis, config: QueueConfig, handler: PayloadHandler):
        self.redis = redis
        self.stream = config.stream
        self.group = config.group
        self.consumer_name = consumer_name_for(config)
        self.block_ms = config.block_ms
        self.count = config.count
        self.handler = handler
        self._stopping = threading.Event()

    def start(self) -> None:
        ensure_consumer_group(self.redis, self.stream, self.group)
        logger.info(
            "Consumer %s listening on stream %s (group %s)",
            self.consumer_name,
            self.stream,
            self.group,
        )

    def consume_once(self) -> int:
        """Read and handle one batch. Returns the number of messages handled."""
        response = self.redis.xreadgroup(
            groupname=self.group,
            consumername=self.consumer_name,
            streams={self.stream: ">"},
            count=self.count,
            block=self.block_ms,
        )
        handled = 0
        for _stream, messages in response or []:
            for message_id, fields in messages:
                self.handle_message(message_id, fields)
                handled += 1
        return handled

    def handle_message(self, message_id: str, fields: dict[str, str]) -> None:
        logger.info("Received upload request %s", message_id)
        try:
            payload = (fields or {}).get(PAYLOAD_FIELD)
            if not payload:
                logger.error("Upload request %s has no '%s' field; dropping", message_id, PAYLOAD_FIELD)
                return
            outcome = self.handler(payload)
            logger.info("Processed upload request %s, report: %s", message_id, getattr(outcome, "report_path", outcome))
        except Exception:
            logger.exception("Failed to process upload request %s", message_id)
        finally:
            self.redis.xack(self.stream, self.group, message_id)

    def run_forever(self) -> None:
        self.start()
        while not self._stopping.is_set():
            try:
                self.consume_once()
            except RedisConnectionError as e:
                logger.warning("Lost connection to Redis (%s); retrying in %.0fs", e, RECONNECT_DELAY_SECONDS)
                self._stopping.wait(RECONNECT_DELAY_SECONDS)
        logger.info("Consumer %s stopped", self.consumer_name)

    def stop(self) -> None:
        self._stopping.set()

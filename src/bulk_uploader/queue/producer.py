"""Publish upload requests onto the Redis stream."""

import json
import logging
from typing import Any

from redis import Redis

from bulk_uploader.queue.consumer import PAYLOAD_FIELD

logger = logging.getLogger(__name__)


class BulkUploadProducer:
    def __init__(self, redis: Redis, stream: str, maxlen: int | None = None):
        self.redis = redis
        self.stream = stream
        self.maxlen = maxlen

    def publish(self, payload: Any) -> str:
        """Append one manifest to the stream. Strings are sent as-is, anything else as JSON."""
        text = payload if isinstance(payload, str) else json.dumps(payload)
        message_id = self.redis.xadd(
            self.stream,
            {PAYLOAD_FIELD: text},
            maxlen=self.maxlen,
            approximate=True,
        )
        logger.info("Published upload request %s to %s", message_id, self.stream)
        return message_id

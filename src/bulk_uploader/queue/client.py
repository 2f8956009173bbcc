"""Redis connection helpers for the upload request stream."""

import logging
import os
import socket

from redis import ConnectionPool, Redis
from redis.exceptions import ResponseError

from bulk_uploader.config import QueueConfig

logger = logging.getLogger(__name__)


def connect(
    url: str,
    *,
    max_connections: int = 10,
    socket_timeout: float = 30.0,
    socket_connect_timeout: float = 5.0,
) -> Redis:
    # socket_timeout has to outlast the XREADGROUP block time
    pool = ConnectionPool.from_url(
        url,
        max_connections=max_connections,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_connect_timeout,
        retry_on_timeout=True,
        decode_responses=True,
    )
    return Redis(connection_pool=pool)


def ensure_consumer_group(redis: Redis, stream: str, group: str, start_id: str = "$") -> None:
    try:
        redis.xgroup_create(name=stream, groupname=group, id=start_id, mkstream=True)
        logger.info("Created consumer group %s on stream %s", group, stream)
    except ResponseError as exc:
        # Group already exists
        if "BUSYGROUP" in str(exc):
            return
        raise


def default_consumer_name() -> str:
    return f"bulk-uploader-{socket.gethostname()}-{os.getpid()}"


def consumer_name_for(config: QueueConfig) -> str:
    return config.consumer_name or default_consumer_name()

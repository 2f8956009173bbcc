"""Redis Streams front end for the upload pipeline."""

from bulk_uploader.queue.client import connect, ensure_consumer_group
from bulk_uploader.queue.consumer import BulkUploadConsumer
from bulk_uploader.queue.producer import BulkUploadProducer

__all__ = ["BulkUploadConsumer", "BulkUploadProducer", "connect", "ensure_consumer_group"]

"""
Backing service clients: MongoDB, Redis and the Kafka log publisher.
"""

from triad.services.cache import CacheService
from triad.services.database import DatabaseService, database_name_from_uri
from triad.services.logger import ConsoleLogSink, KafkaLogSink, LogMessage, LogPublisher

__all__ = [
    "CacheService",
    "DatabaseService",
    "database_name_from_uri",
    "LogPublisher",
    "LogMessage",
    "KafkaLogSink",
    "ConsoleLogSink",
]

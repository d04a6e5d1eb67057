# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import Awaitable, Callable, Protocol

import redis.asyncio as redis

from coreason_opal.events.protocol import LogEntry
from coreason_opal.utils.logger import logger


class AsyncEventSink(Protocol):
    """
    Interface for event sinks.
    """

    async def emit(self, entry: LogEntry) -> None:
        """
        Emits a log entry to the sink.
        """
        ...


class RedisEventSink:
    """
    Event sink that publishes log entries to Redis Pub/Sub.
    """

    def __init__(self, redis_client: redis.Redis) -> None:
        self.redis = redis_client

    async def emit(self, entry: LogEntry) -> None:
        """
        Publishes the entry to Redis.
        """
        # Publish to "run:{run_id}" channel
        await self.redis.publish(f"run:{entry.run_id}", entry.model_dump_json())


class LoggingEventSink:
    """
    Event sink that logs entries to stdout/logger.
    Useful for local debugging and fallback.
    """

    async def emit(self, entry: LogEntry) -> None:
        """
        Logs the entry.
        """
        if entry.level == "error":
            logger.error(f"[{entry.run_id}] {entry.message}")
        else:
            logger.info(f"[{entry.run_id}] {entry.level.upper()} {entry.message}")


class CallbackEventSink:
    """
    Event sink that forwards entries to an async callback (progress hooks for an embedding UI).
    """

    def __init__(self, callback: Callable[[LogEntry], Awaitable[None]]) -> None:
        self.callback = callback

    async def emit(self, entry: LogEntry) -> None:
        await self.callback(entry)


"""
Vending System - Main entry point.

Runs the Redis pub/sub command bridge: commands arriving on the command
channel are translated into controller events, responses go to the response
channel, and controller notifications go to the notification channel.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable

from redis.asyncio import Redis

from vending_system.application.command_handler import CommandHandler
from vending_system.application.vending_service import VendingService
from vending_system.event_system import EventConsumer, EventPublisher, EventType
from vending_system.infrastructure.scheduler import AsyncioCompletionScheduler
from vending_system.infrastructure.settings import get_settings
from vending_system.loggers import logger


# =============================================================================
# Redis Command Listener
# =============================================================================


async def listen_to_redis(redis: Redis, handler: CommandHandler) -> None:
    """
    Listen for commands on Redis pub/sub and process them one at a time.

    Args:
        redis: Redis client instance.
        handler: CommandHandler routing commands to the vending service.
    """
    settings = get_settings()
    command_channel = settings.vending.command_channel
    response_channel = settings.vending.response_channel

    pubsub = redis.pubsub()
    await pubsub.subscribe(command_channel)
    logger.info(f"Listening for commands on channel: {command_channel}")

    async for message in pubsub.listen():
        if message.get("type") != "message":
            continue

        raw_data = message.get("data")
        if raw_data == "ping":
            continue

        try:
            command = json.loads(raw_data)
        except json.JSONDecodeError as e:
            logger.error(f"Command parsing error: {e}")
            continue

        if not isinstance(command, dict):
            logger.error(f"Command must be a JSON object: {raw_data}")
            continue

        try:
            logger.info(f"Received command: {command}")
            response = await handler.execute(command)

            await redis.publish(response_channel, json.dumps(response))
            logger.info(f"Response sent to {response_channel}: {response}")
        except Exception as e:
            logger.error(f"Unexpected error processing command: {e}")


# =============================================================================
# Notification Forwarding
# =============================================================================


def make_notification_forwarder(
    redis: Redis, channel: str
) -> Callable[[dict[str, Any]], Awaitable[None]]:
    """
    Build a consumer handler that republishes notifications on Redis.

    Args:
        redis: Redis client instance.
        channel: Notification channel name.
    """

    async def forward(event: dict[str, Any]) -> None:
        payload = {**event, "type": EventType(event["type"]).value}
        await redis.publish(channel, json.dumps(payload))

    return forward


# =============================================================================
# Main Entry Point
# =============================================================================


async def main() -> None:
    """
    Main entry point for the vending service.

    Wires the scheduler, service, notification queue and Redis bridge, then
    serves commands until cancelled.
    """
    settings = get_settings()

    redis = Redis(
        host=settings.redis.host,
        port=settings.redis.port,
        decode_responses=settings.redis.decode_responses,
    )

    event_queue: asyncio.Queue = asyncio.Queue()
    consumer = EventConsumer(event_queue)
    service = VendingService(
        scheduler=AsyncioCompletionScheduler(),
        event_publisher=EventPublisher(event_queue),
        settings=settings,
    )
    handler = CommandHandler(service)

    forward = make_notification_forwarder(redis, settings.vending.notification_channel)
    for event_type in EventType:
        consumer.register_handler(event_type, forward)
    await consumer.start_consuming()

    try:
        await listen_to_redis(redis, handler)
    finally:
        await consumer.stop_consuming()
        await redis.aclose()


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Application stopped by user")


if __name__ == "__main__":
    run()

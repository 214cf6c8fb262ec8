"""
Event system for the vending system.

This module provides a publish-subscribe notification queue used to fan
controller activity (accepted transitions, rejections) out to listeners
such as the Redis bridge.
"""

import asyncio
from enum import Enum
from typing import Callable, Any, Union

from vending_system.loggers import logger


class EventType(str, Enum):
    """
    Enumeration of notification types in the vending system.

    These notifications are published after a controller processes an event.
    """

    STATE_CHANGED = "state_changed"
    TRANSITION_REJECTED = "transition_rejected"


class EventPublisher:
    """
    Publisher for sending notifications to the event queue.

    Attributes:
        event_queue: The asyncio queue to publish notifications to.
    """

    def __init__(self, event_queue: asyncio.Queue) -> None:
        self.event_queue = event_queue

    async def publish(self, event_type: Union[EventType, str], **data: Any) -> None:
        """
        Publish a notification to the queue.

        Args:
            event_type: The type of notification to publish.
            **data: Additional data as keyword arguments.
        """
        await self.event_queue.put({"type": event_type, **data})

    def publish_nowait(self, event_type: Union[EventType, str], **data: Any) -> None:
        """
        Publish from synchronous code, such as a controller's diagnostics sink.

        Raises:
            asyncio.QueueFull: If a bounded queue is full.
        """
        self.event_queue.put_nowait({"type": event_type, **data})


class EventConsumer:
    """
    Consumer for processing notifications from the event queue.

    Attributes:
        event_queue: The asyncio queue to consume from.
        handlers: Mapping of notification types to their handler functions.
        is_consuming: Flag indicating if the consumer is active.
    """

    def __init__(self, event_queue: asyncio.Queue) -> None:
        self.event_queue = event_queue
        self.handlers: dict[Union[EventType, str], list[Callable]] = {}
        self.is_consuming = False
        self._consume_task: asyncio.Task | None = None

    def register_handler(
        self,
        event_type: Union[EventType, str],
        handler: Callable,
    ) -> None:
        """
        Register a handler for a notification type.

        Args:
            event_type: The notification type to handle.
            handler: The handler function (sync or async).
        """
        if event_type not in self.handlers:
            self.handlers[event_type] = []
        self.handlers[event_type].append(handler)

    def unregister_handler(
        self,
        event_type: Union[EventType, str],
        handler: Callable,
    ) -> None:
        """Unregister a handler for a notification type."""
        if event_type in self.handlers:
            try:
                self.handlers[event_type].remove(handler)
            except ValueError:
                pass

    async def process_event(self, event: dict[str, Any]) -> None:
        """
        Process a single notification by calling all registered handlers.

        Args:
            event: The notification dictionary containing type and data.
        """
        handlers = self.handlers.get(event.get("type"), [])

        for handler in handlers:
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(event)
                else:
                    handler(event)
            except Exception as e:
                logger.error(f"Notification handler error for {event.get('type')}: {e}")

    async def _consume_loop(self) -> None:
        while self.is_consuming:
            try:
                # Timeout allows checking the is_consuming flag
                event = await asyncio.wait_for(
                    self.event_queue.get(),
                    timeout=0.5,
                )
            except asyncio.TimeoutError:
                continue

            await self.process_event(event)
            self.event_queue.task_done()

    async def start_consuming(self) -> None:
        """Start the notification consumption loop."""
        if self.is_consuming:
            return

        self.is_consuming = True
        self._consume_task = asyncio.create_task(self._consume_loop())

    async def stop_consuming(self) -> None:
        """Stop the consumption loop and cancel its task."""
        self.is_consuming = False

        if self._consume_task:
            self._consume_task.cancel()
            try:
                await self._consume_task
            except asyncio.CancelledError:
                pass
            self._consume_task = None

"""Notification handlers.

``NotificationSendingHandler`` runs synchronously and prepares the message;
the per-channel handlers run asynchronously and deliver it through an
optional ``NotificationSender``. Delivery itself is an external concern.
"""

from typing import Any, Protocol

from loguru import logger

from reception_workflow.event_bus.core import EventHandler
from reception_workflow.events.types import HandlerResult, WorkflowEvent


class NotificationSender(Protocol):
    async def send(self, channel: str, aggregate_id: int, message: str) -> Any: ...


def notification_message(event: WorkflowEvent) -> str:
    payload = event.payload if isinstance(event.payload, dict) else {}
    return payload.get("message") or f"Reception {event.aggregate_id} updated"


class NotificationSendingHandler(EventHandler):
    """Builds the notification message for the channel handlers."""

    def handle(self, event: WorkflowEvent) -> HandlerResult:
        message = notification_message(event)
        logger.info("Notification prepared for aggregate {aggregate_id}: {text}", aggregate_id=event.aggregate_id, text=message)
        return HandlerResult.succeeded(self.name, {"message": message})


class ChannelNotificationHandler(EventHandler):
    """Delivers the notification over one channel."""

    channel: str = ""

    def __init__(self, sender: NotificationSender | None = None):
        self.sender = sender

    async def handle(self, event: WorkflowEvent) -> HandlerResult:
        message = notification_message(event)
        if self.sender is None:
            logger.info(
                "No sender configured; {channel} notification for aggregate {aggregate_id} logged only",
                channel=self.channel,
                aggregate_id=event.aggregate_id,
            )
            return HandlerResult.succeeded(self.name, {"channel": self.channel, "delivered": False})

        receipt = await self.sender.send(self.channel, event.aggregate_id, message)
        logger.info("{channel} notification sent for aggregate {aggregate_id}", channel=self.channel, aggregate_id=event.aggregate_id)
        return HandlerResult.succeeded(self.name, {"channel": self.channel, "delivered": True, "receipt": receipt})


class EmailNotificationHandler(ChannelNotificationHandler):
    channel = "email"


class SmsNotificationHandler(ChannelNotificationHandler):
    channel = "sms"


class PushNotificationHandler(ChannelNotificationHandler):
    channel = "push"

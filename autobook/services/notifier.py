"""
Notification sinks for booking transitions.

The engine calls ``emit`` once per transition and never waits on the
result. Sinks that do I/O hand the work to the running event loop; a
failing sink is logged and otherwise ignored.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Protocol

from autobook.config import NOTIFICATION_INBOX_SIZE, NOTIFY_EMAIL
from autobook.models import TransitionEvent
from autobook.services.email import send_booking_email

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def emit(self, event: TransitionEvent) -> None:
        """Fire-and-forget notice of a booking transition."""
        ...


class LoggingNotificationSink:
    def emit(self, event: TransitionEvent) -> None:
        logger.info(
            "Booking %s %s: %s -> %s (court %d, %s %s %s)",
            event.booking_id,
            event.kind.value,
            event.from_status.value,
            event.to_status.value,
            event.court_number,
            event.venue_id,
            event.date.isoformat(),
            event.time_slot,
        )


class InboxNotificationSink:
    """Keeps the most recent notices in memory, newest last."""

    def __init__(self, maxlen: int = NOTIFICATION_INBOX_SIZE) -> None:
        self._events: deque[TransitionEvent] = deque(maxlen=maxlen)

    def emit(self, event: TransitionEvent) -> None:
        self._events.append(event)

    def events(self) -> list[TransitionEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()


class EmailNotificationSink:
    """
    Mails each notice to a fixed address.

    Sending is scheduled on the running event loop; outside a loop the
    notice is only logged.
    """

    def __init__(self, to_email: str) -> None:
        self._to_email = to_email
        self._pending: set[asyncio.Task[None]] = set()

    def emit(self, event: TransitionEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No event loop, email for booking %s not sent", event.booking_id)
            return
        task = loop.create_task(self._send(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, event: TransitionEvent) -> None:
        try:
            await send_booking_email(self._to_email, [event])
        except Exception:
            logger.exception("Booking email for %s failed", event.booking_id)


class FanOutNotificationSink:
    """Delivers every notice to several sinks, isolating their failures."""

    def __init__(self, *sinks: NotificationSink) -> None:
        self._sinks = list(sinks)

    def emit(self, event: TransitionEvent) -> None:
        for sink in self._sinks:
            try:
                sink.emit(event)
            except Exception:
                logger.exception("Notification sink %s failed", type(sink).__name__)


def build_default_sink(inbox: InboxNotificationSink) -> NotificationSink:
    """Inbox + log, plus email when a recipient is configured."""
    sinks: list[NotificationSink] = [inbox, LoggingNotificationSink()]
    if NOTIFY_EMAIL:
        sinks.append(EmailNotificationSink(NOTIFY_EMAIL))
    return FanOutNotificationSink(*sinks)

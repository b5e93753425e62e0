"""
Event Broadcasting Service

Services run synchronously inside a database transaction; realtime pushes
must only go out once that transaction is committed. EventBroadcaster
collects the pushes a service operation produces and delivers them through
the WebSocket connection manager when the route flushes it.
"""
from typing import List, Tuple
import logging

from constants import SocketEvent
from models import Message, Notification, Professional
from schemas import MessageResponse, NotificationResponse, ProfessionalResponse, dump
from services.websocket import manager as default_manager, ConnectionManager

logger = logging.getLogger(__name__)


class EventBroadcaster:
    """
    Queues realtime events during a request and sends them on flush().

    Usage:
        events = EventBroadcaster()
        service = QuoteService(db, NotificationService(db, events))
        service.submit(...)      # commits, queues a notification push
        await events.flush()
    """

    def __init__(self, connection_manager: ConnectionManager = None):
        self.manager = connection_manager or default_manager
        self._user_events: List[Tuple[str, str, dict]] = []
        self._broadcasts: List[dict] = []

    def notification_created(self, notification: Notification):
        self._user_events.append((
            notification.user_id,
            SocketEvent.NOTIFICATION,
            dump(NotificationResponse, notification),
        ))

    def message_created(self, message: Message) -> dict:
        """Queue newMessage for both participants; returns the serialized message."""
        payload = dump(MessageResponse, message)
        for user_id in (message.sender_id, message.receiver_id):
            self._user_events.append((user_id, SocketEvent.NEW_MESSAGE, payload))
        return payload

    def professional_changed(self, event: str, professional: Professional):
        """Queue a professionalCreated/Updated/Verified broadcast with the serialized profile."""
        self._broadcasts.append({"type": event, "data": dump(ProfessionalResponse, professional)})

    def professional_deleted(self, professional_id: str, user_id: str):
        self._broadcasts.append({
            "type": SocketEvent.PROFESSIONAL_DELETED,
            "data": {"_id": professional_id, "userId": user_id},
        })


    @property
    def pending(self) -> int:
        return len(self._user_events) + len(self._broadcasts)

    def discard(self):
        """Drop queued events (the transaction that produced them was rolled back)."""
        self._user_events.clear()
        self._broadcasts.clear()

    async def flush(self) -> int:
        """
        Deliver every queued event.

        Returns:
            Number of events delivered
        """
        count = self.pending
        for user_id, event, data in self._user_events:
            await self.manager.emit_to_user(user_id, event, data)
        for message in self._broadcasts:
            await self.manager.broadcast(message)
        self.discard()
        if count:
            logger.debug(f"Flushed {count} realtime event(s)")
        return count

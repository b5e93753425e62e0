"""
WebSocket connection manager for realtime chat and marketplace events

ARCHITECTURE NOTE: Non-blocking delivery design
- Each connection has a dedicated send queue and sender task
- Sends are non-blocking - frames are queued per-client
- Slow clients won't block fast clients
- Full queues result in dropped frames (logged) rather than blocking
- Authenticated sockets join a room named after their user id; per-user
  events (newMessage, notification, typing) go to every socket in that room
"""
from fastapi import WebSocket
from typing import Set, Dict, Optional, List, Tuple
import asyncio
import json
import logging
import time
from datetime import datetime

from constants import ChatConfig, SocketEvent

logger = logging.getLogger(__name__)


class TypingTracker:
    """
    Tracks active typing indicators so stale ones can be expired.

    Keyed by (sender, receiver, conversation); each entry holds the
    monotonic deadline after which the indicator is considered stopped.
    """

    def __init__(self, timeout_seconds: float = ChatConfig.TYPING_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds
        self._deadlines: Dict[Tuple[str, str, str], float] = {}

    def start(self, sender_id: str, receiver_id: str, conversation_id: str, now: Optional[float] = None):
        now = time.monotonic() if now is None else now
        self._deadlines[(sender_id, receiver_id, conversation_id)] = now + self.timeout_seconds

    def stop(self, sender_id: str, receiver_id: str, conversation_id: str) -> bool:
        """Forget an indicator. Returns True if it was active."""
        return self._deadlines.pop((sender_id, receiver_id, conversation_id), None) is not None

    def stop_all_from(self, sender_id: str) -> List[Tuple[str, str, str]]:
        """Forget every indicator a sender has open (used on disconnect)."""
        keys = [key for key in self._deadlines if key[0] == sender_id]
        for key in keys:
            del self._deadlines[key]
        return keys

    def pop_expired(self, now: Optional[float] = None) -> List[Tuple[str, str, str]]:
        now = time.monotonic() if now is None else now
        expired = [key for key, deadline in self._deadlines.items() if deadline <= now]
        for key in expired:
            del self._deadlines[key]
        return expired

    def __len__(self):
        return len(self._deadlines)


class ConnectionManager:
    """
    Manages WebSocket connections, user rooms and outbound frames.

    Frames are JSON objects: {"type": <event name>, "data": {...}}.
    """

    def __init__(self, queue_size: int = ChatConfig.SEND_QUEUE_SIZE):
        self.queue_size = queue_size
        self.active_connections: Set[WebSocket] = set()
        self.connection_metadata: Dict[WebSocket, dict] = {}
        self.send_queues: Dict[WebSocket, asyncio.Queue] = {}
        self.sender_tasks: Dict[WebSocket, asyncio.Task] = {}
        self.rooms: Dict[str, Set[WebSocket]] = {}
        self.typing = TypingTracker()

    async def connect(self, websocket: WebSocket, user_id: Optional[str] = None):
        """
        Accept a WebSocket connection and start its sender task.

        Args:
            websocket: FastAPI WebSocket connection
            user_id: Authenticated user id, or None for anonymous sockets
        """
        await websocket.accept()
        self.active_connections.add(websocket)
        self.connection_metadata[websocket] = {
            'client_id': f"client-{id(websocket)}",
            'user_id': user_id,
            'rooms': set(),
            'connected_at': datetime.utcnow().isoformat()
        }

        self.send_queues[websocket] = asyncio.Queue(maxsize=self.queue_size)
        self.sender_tasks[websocket] = asyncio.create_task(
            self._sender_loop(websocket)
        )

        logger.info(f"✅ WebSocket client connected (user: {user_id or 'anonymous'}). Total connections: {len(self.active_connections)}")

        self._enqueue(websocket, {
            "type": SocketEvent.CONNECTION,
            "status": "connected",
            "authenticated": user_id is not None,
        })

    def disconnect(self, websocket: WebSocket) -> Optional[str]:
        """
        Unregister a WebSocket connection and cleanup resources.

        Returns:
            The user id the socket belonged to, if any
        """
        metadata = self.connection_metadata.pop(websocket, {})

        if websocket in self.sender_tasks:
            self.sender_tasks[websocket].cancel()
            del self.sender_tasks[websocket]

        for room in metadata.get('rooms', set()):
            members = self.rooms.get(room)
            if members is not None:
                members.discard(websocket)
                if not members:
                    del self.rooms[room]

        self.active_connections.discard(websocket)
        self.send_queues.pop(websocket, None)

        user_id = metadata.get('user_id')
        logger.info(f"🔌 WebSocket client disconnected (user: {user_id or 'anonymous'}). Total connections: {len(self.active_connections)}")
        return user_id

    def user_of(self, websocket: WebSocket) -> Optional[str]:
        return self.connection_metadata.get(websocket, {}).get('user_id')

    def join(self, websocket: WebSocket, room: str):
        """Add a connection to a room (a user id)."""
        self.rooms.setdefault(room, set()).add(websocket)
        self.connection_metadata.setdefault(websocket, {'rooms': set()})['rooms'].add(room)
        logger.debug(f"Socket joined room {room} ({len(self.rooms[room])} member(s))")


    async def _sender_loop(self, websocket: WebSocket):
        """
        Dedicated sender task for each connection.
        Pulls frames from queue and sends without blocking other connections.
        """
        queue = self.send_queues[websocket]

        try:
            while True:
                message = await queue.get()
                try:
                    await websocket.send_text(message)
                except Exception as e:
                    logger.warning(f"Failed to send to client: {e}")
                    # Connection is dead, the receive loop will call disconnect()
                    break
        except asyncio.CancelledError:
            pass

    def _enqueue(self, websocket: WebSocket, message: dict) -> bool:
        """Queue one frame for a connection; False when dropped."""
        queue = self.send_queues.get(websocket)
        if queue is None:
            return False
        try:
            queue.put_nowait(json.dumps(message, default=str))
            return True
        except asyncio.QueueFull:
            logger.warning(
                f"Send queue full for client "
                f"{self.connection_metadata.get(websocket, {}).get('client_id')}, "
                f"dropping message type: {message.get('type')}"
            )
            return False

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """
        Send a frame to one specific connection.

        Args:
            message: Dictionary to be sent as JSON
            websocket: Target WebSocket connection
        """
        if not self._enqueue(websocket, message):
            logger.debug(f"Frame {message.get('type')} not delivered to socket")

    async def emit(self, event: str, data: dict, websocket: WebSocket):
        await self.send_personal_message({"type": event, "data": data}, websocket)

    async def emit_to_user(self, user_id: str, event: str, data: dict) -> int:
        """
        Send a frame to every socket in a user's room.

        Returns:
            Number of sockets the frame was queued for
        """
        message = {"type": event, "data": data}
        delivered = 0
        for connection in list(self.rooms.get(user_id, ())):
            if self._enqueue(connection, message):
                delivered += 1
        if not delivered:
            logger.debug(f"User {user_id} offline, {event} not pushed")
        return delivered

    async def broadcast(self, message: dict, exclude: Set[WebSocket] = None):
        """
        Non-blocking broadcast to all connections.

        Message format:
        {
            "type": "professionalCreated" | "professionalUpdated" | ...,
            "data": {...}
        }
        """
        if not self.active_connections:
            logger.debug(f"No active connections to broadcast message type: {message.get('type')}")
            return

        exclude = exclude or set()
        queued_count = 0
        full_queues = 0

        for connection in list(self.active_connections):
            if connection in exclude:
                continue
            if self._enqueue(connection, message):
                queued_count += 1
            else:
                full_queues += 1

        if full_queues > 0:
            logger.warning(f"Dropped {message.get('type')} to {full_queues} clients (full queues)")
        else:
            logger.debug(f"Queued {message.get('type')} to {queued_count} clients")

    async def expire_typing(self, now: Optional[float] = None) -> int:
        """
        Send userStopTyping for indicators that were not stopped in time.

        Returns:
            Number of indicators expired
        """
        expired = self.typing.pop_expired(now)
        for sender_id, receiver_id, conversation_id in expired:
            await self.emit_to_user(receiver_id, SocketEvent.USER_STOP_TYPING, {
                "senderId": sender_id,
                "conversationId": conversation_id,
            })
        if expired:
            logger.debug(f"Expired {len(expired)} typing indicator(s)")
        return len(expired)

    async def run_typing_sweeper(self, interval: float = ChatConfig.TYPING_SWEEP_INTERVAL_SECONDS):
        """Background loop expiring stale typing indicators until cancelled."""
        logger.info("⌨️  Typing indicator sweeper started")
        try:
            while True:
                await asyncio.sleep(interval)
                await self.expire_typing()
        except asyncio.CancelledError:
            logger.info("Typing indicator sweeper stopped")
            raise


# Global connection manager instance
manager = ConnectionManager()

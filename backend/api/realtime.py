"""
Realtime chat over WebSocket

Frames are JSON objects {"type": <event>, "data": {...}} in both
directions. Client events: join, sendMessage, typing, stopTyping (and ping
for keepalive). Each event that touches the database opens its own session.
"""
from typing import Callable, Optional
import json
import logging

from fastapi import WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from constants import SocketEvent
from exceptions import ApplicationError, AuthenticationError, DatabaseError
from schemas import MessageResponse, dump
from services.auth_service import AuthService
from services.chat_service import ChatService
from services.websocket import manager

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def authenticate_socket(token: Optional[str], session_factory: SessionFactory) -> Optional[str]:
    """User id behind a socket token; None for anonymous or rejected tokens."""
    if not token:
        return None
    db = session_factory()
    try:
        return AuthService(db).authenticate_token(token).id
    except AuthenticationError as e:
        logger.info(f"WebSocket token rejected ({e.message}), continuing as anonymous")
        return None
    finally:
        db.close()


async def _error(websocket: WebSocket, error: str, client_message_id: Optional[str] = None):
    await manager.emit(SocketEvent.MESSAGE_ERROR, {"error": error, "clientMessageId": client_message_id}, websocket)


async def handle_join(websocket: WebSocket, data):
    """Join the socket's own user room. Anonymous sockets and foreign rooms are refused."""
    user_id = manager.user_of(websocket)
    room = data.get('userId') if isinstance(data, dict) else data
    if user_id is None:
        await _error(websocket, "Authentication required to join")
        return
    if room != user_id:
        await _error(websocket, "You can only join your own room")
        return
    manager.join(websocket, user_id)
    await manager.emit(SocketEvent.JOINED, {"userId": user_id}, websocket)


async def handle_send_message(websocket: WebSocket, data: dict, session_factory: SessionFactory):
    """
    Store a chat message and deliver it.

    The sender's socket gets messageSent; both participants' rooms get
    newMessage. A repeated clientMessageId only re-acknowledges the stored
    message.
    """
    client_message_id = data.get('clientMessageId')
    sender_id = manager.user_of(websocket)
    if sender_id is None:
        await _error(websocket, "Authentication required to send messages", client_message_id)
        return

    db = session_factory()
    try:
        message, created = ChatService(db).send_message(
            sender_id=sender_id,
            receiver_id=data.get('receiverId'),
            content=data.get('content'),
            conversation_id=data.get('conversationId'),
            client_message_id=client_message_id,
            inquiry_id=data.get('inquiryId'),
        )
        payload = dump(MessageResponse, message)
    except (DatabaseError, SQLAlchemyError) as e:
        db.rollback()
        logger.error(f"sendMessage from {sender_id} failed: {type(e).__name__}: {e}")
        await _error(websocket, "Failed to send message", client_message_id)
        return
    except ApplicationError as e:
        db.rollback()
        logger.warning(f"sendMessage from {sender_id} rejected: {e.message}")
        await _error(websocket, e.message, client_message_id)
        return
    finally:
        db.close()

    await manager.emit(SocketEvent.MESSAGE_SENT, payload, websocket)
    if not created:
        return

    if manager.typing.stop(sender_id, payload['receiverId'], payload['conversationId']):
        await manager.emit_to_user(payload['receiverId'], SocketEvent.USER_STOP_TYPING, {
            "senderId": sender_id,
            "conversationId": payload['conversationId'],
        })
    for user_id in (sender_id, payload['receiverId']):
        await manager.emit_to_user(user_id, SocketEvent.NEW_MESSAGE, payload)


def _may_signal_typing(sender_id: str, receiver_id: str, conversation_id: Optional[str],
                       session_factory: SessionFactory) -> bool:
    db = session_factory()
    try:
        return ChatService(db).may_signal_typing(sender_id, receiver_id, conversation_id)
    finally:
        db.close()


async def handle_typing(websocket: WebSocket, data: dict, typing: bool, session_factory: SessionFactory):
    """
    Relay a typing indicator to the receiver.

    Indicators only travel between the two participants of a conversation;
    a stop is only relayed for an indicator that is still running.
    """
    sender_id = manager.user_of(websocket)
    receiver_id = data.get('receiverId')
    conversation_id = data.get('conversationId')
    if sender_id is None or not receiver_id:
        return

    if typing:
        try:
            allowed = _may_signal_typing(sender_id, receiver_id, conversation_id, session_factory)
        except SQLAlchemyError as e:
            logger.error(f"typing from {sender_id} failed: {type(e).__name__}: {e}")
            return
        if not allowed:
            logger.debug(f"Dropped typing from {sender_id} to non-participant {receiver_id}")
            return
        manager.typing.start(sender_id, receiver_id, conversation_id)
        event = SocketEvent.USER_TYPING
    else:
        if not manager.typing.stop(sender_id, receiver_id, conversation_id):
            return
        event = SocketEvent.USER_STOP_TYPING
    await manager.emit_to_user(receiver_id, event, {"senderId": sender_id, "conversationId": conversation_id})


async def handle_frame(websocket: WebSocket, frame: dict, session_factory: SessionFactory):
    message_type = frame.get("type")
    data = frame.get("data")
    if data is None:
        data = {}

    if message_type == "ping":
        await manager.send_personal_message({"type": "pong"}, websocket)
    elif message_type == SocketEvent.JOIN:
        await handle_join(websocket, data)
    elif message_type == SocketEvent.SEND_MESSAGE:
        if not isinstance(data, dict):
            await _error(websocket, "Invalid message payload")
            return
        await handle_send_message(websocket, data, session_factory)
    elif message_type in (SocketEvent.TYPING, SocketEvent.STOP_TYPING):
        if isinstance(data, dict):
            await handle_typing(websocket, data, message_type == SocketEvent.TYPING, session_factory)
    else:
        logger.warning(f"Unknown message type: {message_type}")


async def websocket_endpoint(websocket: WebSocket, token: Optional[str], session_factory: SessionFactory):
    """
    WebSocket endpoint handler

    Authenticates the optional token, then handles client frames until the
    socket closes. Typing indicators the user left open are stopped on
    disconnect.
    """
    user_id = authenticate_socket(token, session_factory)
    await manager.connect(websocket, user_id)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                frame = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON from client: {data[:200]}")
                continue
            if not isinstance(frame, dict):
                logger.warning("Ignoring non-object frame from client")
                continue
            await handle_frame(websocket, frame, session_factory)

    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected normally")
    finally:
        user_id = manager.disconnect(websocket)
        if user_id:
            for sender_id, receiver_id, conversation_id in manager.typing.stop_all_from(user_id):
                await manager.emit_to_user(receiver_id, SocketEvent.USER_STOP_TYPING, {
                    "senderId": sender_id,
                    "conversationId": conversation_id,
                })

"""
Conversation and message API endpoints

Both path families are served: /messages/... and /conversations/...
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from constants import HTTPStatus
from database import get_db
from dependencies import get_current_user, get_event_broadcaster
from models import User
from schemas import ConversationSummary, MessageCreate, MessageResponse, ReadReceipt
from services.chat_service import ChatService
from services.event_broadcaster import EventBroadcaster
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.get("/messages/conversations/all", response_model=List[ConversationSummary])
@router.get("/conversations", response_model=List[ConversationSummary])
@handle_api_errors("List conversations")
def list_conversations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """The caller's conversations, most recent activity first."""
    return ChatService(db).conversations_for(user)


@router.get("/messages/conversation/{conversation_id}", response_model=List[MessageResponse])
@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageResponse])
@handle_api_errors("List messages")
def list_messages(conversation_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ChatService(db).messages_for(conversation_id, user)


@router.put("/messages/conversation/{conversation_id}/read", response_model=ReadReceipt)
@handle_api_errors("Mark conversation read")
def mark_read(conversation_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"updated": ChatService(db).mark_read(conversation_id, user)}


@router.post("/conversations/{conversation_id}/messages", response_model=MessageResponse,
             status_code=HTTPStatus.CREATED)
@handle_api_errors("Send message")
async def send_message(
    conversation_id: str,
    body: MessageCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    """
    Store a message and push newMessage to both participants.

    A clientMessageId the sender already used returns the stored message
    without pushing it again.
    """
    message, created = ChatService(db).send_message(
        sender_id=user.id,
        receiver_id=body.receiver_id,
        content=body.content,
        conversation_id=conversation_id,
        client_message_id=body.client_message_id,
        inquiry_id=body.inquiry_id,
    )
    if created:
        events.message_created(message)
        await events.flush()
    return message

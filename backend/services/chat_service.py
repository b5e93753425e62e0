"""
Chat Service

Stores chat messages between two users and answers conversation queries.
Used by both the WebSocket gateway and the REST messaging endpoints.

Rules:
- Content is trimmed; it must be non-empty and at most MAX_MESSAGE_LENGTH
- A conversation's participants are fixed by its first message
- A repeated client message id from the same sender returns the stored
  message instead of inserting a duplicate
- A default-format conversation id (conv_<a>_<b>) can only be opened by
  the two users it names
"""
from datetime import datetime
from typing import List, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from constants import ChatConfig
from exceptions import DatabaseError, NotFoundError, PermissionDeniedError, ValidationError
from models import Conversation, Message, User
from repositories import (
    CompanyRepository,
    ConversationRepository,
    MessageRepository,
    UserRepository,
)
from utils.ids import default_conversation_id, is_default_conversation_id

logger = logging.getLogger(__name__)


def clean_content(content) -> str:
    """
    Normalize message content.

    Raises:
        ValidationError: Empty after trimming, or longer than the limit
    """
    text = (content or '').strip() if isinstance(content, str) or content is None else str(content).strip()
    if not text:
        raise ValidationError("Message cannot be empty", {"content": "empty"})
    if len(text) > ChatConfig.MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"Message is too long (maximum {ChatConfig.MAX_MESSAGE_LENGTH} characters)",
            {"content": len(text)},
        )
    return text


class ChatService:

    def __init__(self, db: Session):
        self.db = db
        self.conversations = ConversationRepository(db)
        self.messages = MessageRepository(db)
        self.users = UserRepository(db)
        self.companies = CompanyRepository(db)

    def send_message(self, sender_id: str, receiver_id: str, content: str,
                     conversation_id: Optional[str] = None,
                     client_message_id: Optional[str] = None,
                     inquiry_id: Optional[str] = None) -> Tuple[Message, bool]:
        """
        Store a message.

        Returns:
            (message, created) where created is False when the client message
            id was already stored for this sender

        Raises:
            ValidationError: Bad content, missing or invalid receiver
            NotFoundError: Receiver does not exist
            PermissionDeniedError: Sender is not a participant of the conversation
            DatabaseError: The message could not be stored
        """
        text = clean_content(content)

        if client_message_id:
            existing = self.messages.get_by_client_id(sender_id, client_message_id)
            if existing is not None:
                logger.debug(f"Duplicate client message {client_message_id} from {sender_id}")
                return existing, False

        if not receiver_id:
            raise ValidationError("Receiver is required", {"receiverId": None})
        if receiver_id == sender_id:
            raise ValidationError("You cannot message yourself", {"receiverId": receiver_id})
        if self.users.get_by_id(receiver_id) is None:
            raise NotFoundError("Recipient", receiver_id)

        conversation_id = conversation_id or default_conversation_id(sender_id, receiver_id)
        conversation = self.conversations.get_by_id(conversation_id)
        now = datetime.utcnow()

        if conversation is None:
            self._check_new_conversation_id(conversation_id, sender_id, receiver_id)
            conversation = Conversation(
                id=conversation_id,
                participant_one_id=sender_id,
                participant_two_id=receiver_id,
                inquiry_id=inquiry_id,
                created_at=now,
                updated_at=now,
            )
            self.conversations.create(conversation)
        else:
            if not conversation.has_participant(sender_id):
                raise PermissionDeniedError("You are not part of this conversation")
            if conversation.other_participant_id(sender_id) != receiver_id:
                raise ValidationError("Receiver is not part of this conversation", {"receiverId": receiver_id})
            conversation.updated_at = now

        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=text,
            client_message_id=client_message_id,
            inquiry_id=inquiry_id,
            created_at=now,
        )
        try:
            self.messages.create(message)
            self.db.commit()
        except IntegrityError as e:
            # Concurrent send with the same client message id
            self.db.rollback()
            if client_message_id:
                existing = self.messages.get_by_client_id(sender_id, client_message_id)
                if existing is not None:
                    return existing, False
            raise DatabaseError("send_message", "Could not store message") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError("send_message", "Could not store message") from e

        logger.debug(f"💬 Message {message.id} stored in {conversation.id}")
        return message, True

    def may_signal_typing(self, sender_id: str, receiver_id: str, conversation_id: Optional[str] = None) -> bool:
        """
        Whether a typing indicator from sender may reach receiver.

        An existing conversation must be between exactly these two users; a
        conversation that does not exist yet follows the rules for opening one.
        """
        if not receiver_id or receiver_id == sender_id:
            return False
        conversation_id = conversation_id or default_conversation_id(sender_id, receiver_id)
        conversation = self.conversations.get_by_id(conversation_id)
        if conversation is None:
            return not is_default_conversation_id(conversation_id) or \
                conversation_id == default_conversation_id(sender_id, receiver_id)
        return conversation.has_participant(sender_id) and \
            conversation.other_participant_id(sender_id) == receiver_id

    @staticmethod
    def _check_new_conversation_id(conversation_id: str, sender_id: str, receiver_id: str):
        """A default-format id may only open the thread of the pair it names."""
        if is_default_conversation_id(conversation_id) and \
                conversation_id != default_conversation_id(sender_id, receiver_id):
            raise ValidationError(
                "Conversation id is reserved for another pair of users",
                {"conversationId": conversation_id},
            )

    def _participant_conversation(self, conversation_id: str, user: User) -> Optional[Conversation]:
        conversation = self.conversations.get_by_id(conversation_id)
        if conversation is not None and not conversation.has_participant(user.id):
            raise PermissionDeniedError()
        return conversation

    def messages_for(self, conversation_id: str, user: User) -> List[Message]:
        """Messages oldest first; an unknown conversation has no messages."""
        if self._participant_conversation(conversation_id, user) is None:
            return []
        return self.messages.for_conversation(conversation_id)

    def mark_read(self, conversation_id: str, user: User) -> int:
        if self._participant_conversation(conversation_id, user) is None:
            return 0
        updated = self.messages.mark_read(conversation_id, user.id)
        self.db.commit()
        return updated

    def conversations_for(self, user: User) -> List[dict]:
        """
        Summaries of the user's conversations, most recent activity first.

        Each summary names the other participant (and their company, if they
        administer one), the last message, and unread/total counts.
        """
        summaries = []
        for conversation in self.conversations.for_user(user.id):
            if conversation.participant_one_id == user.id:
                other = conversation.participant_two
            else:
                other = conversation.participant_one
            last = self.messages.last_message(conversation.id)
            summaries.append({
                "conversation_id": conversation.id,
                "other_user": other,
                "company": self.companies.get_by_admin(other.id),
                "last_message": {
                    "content": last.content,
                    "created_at": last.created_at,
                    "sender": last.sender_id,
                } if last else None,
                "unread_count": self.messages.unread_count(conversation.id, user.id),
                "total_messages": self.messages.count_in(conversation.id),
            })
        return summaries

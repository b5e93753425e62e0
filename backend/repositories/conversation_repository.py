"""
Conversation and message repositories for chat.
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from models import Conversation, Message
from .base_repository import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for Conversation model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Conversation)

    def for_user(self, user_id: str) -> List[Conversation]:
        """Conversations the user takes part in, most recent activity first."""
        return self.query().options(
            joinedload(self.model.participant_one),
            joinedload(self.model.participant_two),
        ).filter(
            or_(self.model.participant_one_id == user_id, self.model.participant_two_id == user_id)
        ).order_by(self.model.updated_at.desc()).all()

    def delete_for_user(self, user_id: str) -> int:
        """Delete every conversation (and its messages) the user takes part in."""
        conversations = self.query().filter(
            or_(self.model.participant_one_id == user_id, self.model.participant_two_id == user_id)
        ).all()
        for conversation in conversations:
            self.db.delete(conversation)
        self.db.flush()
        return len(conversations)


class MessageRepository(BaseRepository[Message]):
    """Repository for Message model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Message)

    def for_conversation(self, conversation_id: str) -> List[Message]:
        """Messages in a conversation, oldest first."""
        return self.query().options(joinedload(self.model.sender)).filter(
            self.model.conversation_id == conversation_id
        ).order_by(self.model.created_at.asc()).all()

    def get_by_client_id(self, sender_id: str, client_message_id: str) -> Optional[Message]:
        """Find a message a sender already stored under the same client message id."""
        return self.query().filter(
            self.model.sender_id == sender_id,
            self.model.client_message_id == client_message_id
        ).first()

    def last_message(self, conversation_id: str) -> Optional[Message]:
        return self.query().filter(
            self.model.conversation_id == conversation_id
        ).order_by(self.model.created_at.desc()).first()

    def count_in(self, conversation_id: str) -> int:
        return self.query().filter(self.model.conversation_id == conversation_id).count()

    def unread_count(self, conversation_id: str, receiver_id: str) -> int:
        return self.query().filter(
            self.model.conversation_id == conversation_id,
            self.model.receiver_id == receiver_id,
            self.model.read.is_(False)
        ).count()

    def mark_read(self, conversation_id: str, receiver_id: str) -> int:
        """Mark messages addressed to the receiver as read. Returns rows updated."""
        updated = self.query().filter(
            self.model.conversation_id == conversation_id,
            self.model.receiver_id == receiver_id,
            self.model.read.is_(False)
        ).update({self.model.read: True}, synchronize_session=False)
        self.db.flush()
        return updated

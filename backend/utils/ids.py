"""
Identifier helpers.

Provides consistent UUID generation across all models and the default
conversation id used when a chat message does not name its thread.
"""
import uuid

DEFAULT_CONVERSATION_PREFIX = "conv_"


def generate_uuid() -> str:
    """
    Generate a new UUID string.

    Returns:
        str: A new UUID4 string
    """
    return str(uuid.uuid4())


def default_conversation_id(user_a: str, user_b: str) -> str:
    """
    Build the conversation id for two users who chat without an explicit thread.

    The ids are sorted so both sides derive the same value.
    """
    first, second = sorted([user_a, user_b])
    return f"{DEFAULT_CONVERSATION_PREFIX}{first}_{second}"


def is_default_conversation_id(conversation_id: str) -> bool:
    """True for ids in the default format, which belong to exactly one pair of users."""
    return conversation_id.startswith(DEFAULT_CONVERSATION_PREFIX)

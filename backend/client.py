"""
Marketplace API client

A small synchronous client for the REST API (authentication and profile)
and the bookkeeping a chat window needs to show messages optimistically
while they are being delivered over the WebSocket.
"""
from typing import Callable, Dict, List, Optional
import logging
import time
import uuid

import httpx

from exceptions import (
    ApplicationError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

PROFILE_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 1.0
TEMP_ID_PREFIX = "temp-"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str):
            return message
    return f"HTTP {response.status_code}"


def raise_for_error(response: httpx.Response) -> None:
    """
    Raise the application error matching an error response.

    Raises:
        ValidationError (400), AuthenticationError (401), PermissionDeniedError (403),
        NotFoundError (404), ConflictError (409), ApplicationError (anything else)
    """
    if response.is_success:
        return
    message = _error_message(response)
    status_code = response.status_code
    if status_code == 400:
        raise ValidationError(message)
    if status_code == 401:
        raise AuthenticationError(message)
    if status_code == 403:
        raise PermissionDeniedError(message)
    if status_code == 404:
        raise NotFoundError("Resource", message=message)
    if status_code == 409:
        raise ConflictError(message)
    raise ApplicationError(message, {"status_code": status_code})


class MarketplaceClient:
    """
    REST client holding the bearer token of the signed-in user.

    Usage:
        with MarketplaceClient("http://localhost:5000") as client:
            client.login("me@example.com", "secret123")
            profile = client.fetch_profile()
    """

    def __init__(self, base_url: str, token: Optional[str] = None,
                 transport: Optional[httpx.BaseTransport] = None,
                 retry_delay: float = RETRY_DELAY_SECONDS,
                 sleep: Callable[[float], None] = time.sleep,
                 timeout: float = 10.0):
        self.token = token
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._http = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self._http.close()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _store_session(self, response: httpx.Response) -> dict:
        raise_for_error(response)
        body = response.json()
        self.token = body["token"]
        return body["user"]

    def login(self, email: str, password: str) -> dict:
        """Sign in and keep the token. Returns the user."""
        response = self._http.post("/api/auth/login", json={"email": email, "password": password})
        return self._store_session(response)

    def register(self, name: str, email: str, password: str, role: str = "homeowner", **extra) -> dict:
        """Create an account and keep its token. Returns the user."""
        payload = {"name": name, "email": email, "password": password, "role": role, **extra}
        response = self._http.post("/api/register", json=payload)
        return self._store_session(response)

    def fetch_profile(self) -> dict:
        """
        Get the signed-in user's profile.

        Network errors and 5xx responses are retried up to PROFILE_ATTEMPTS
        times with a fixed delay. A 401/403 is final: the stored token is
        dropped.

        Raises:
            AuthenticationError: No token, or the server rejected it
            ApplicationError: The profile could not be fetched
        """
        if not self.token:
            raise AuthenticationError("Not signed in")

        last_error: Optional[Exception] = None
        for attempt in range(1, PROFILE_ATTEMPTS + 1):
            try:
                response = self._http.get("/api/users/profile", headers=self._headers())
            except httpx.TransportError as e:
                last_error = e
                logger.warning(f"Profile fetch attempt {attempt}/{PROFILE_ATTEMPTS} failed: {e}")
            else:
                if response.status_code in (401, 403):
                    self.token = None
                    raise AuthenticationError(_error_message(response))
                if response.status_code < 500:
                    raise_for_error(response)
                    return response.json()
                last_error = ApplicationError(_error_message(response), {"status_code": response.status_code})
                logger.warning(f"Profile fetch attempt {attempt}/{PROFILE_ATTEMPTS} got HTTP {response.status_code}")

            if attempt < PROFILE_ATTEMPTS:
                self._sleep(self.retry_delay)

        raise ApplicationError(f"Could not fetch profile after {PROFILE_ATTEMPTS} attempts: {last_error}")


class MessageThread:
    """
    Ordered messages of one conversation as a chat window shows them.

    Messages are wire-format dicts (_id, conversationId, senderId, content,
    clientMessageId, createdAt). Optimistic messages carry a
    temp-<ms>-<random> id that is sent as the clientMessageId, so the
    server's copy replaces them when it arrives. The random part keeps two
    sends in the same millisecond apart.
    """

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        self.messages: List[dict] = []

    def add_optimistic(self, sender_id: str, receiver_id: str, content: str,
                       now_ms: Optional[int] = None) -> dict:
        """Insert a pending message and return it; its _id doubles as the clientMessageId."""
        now_ms = int(time.time() * 1000) if now_ms is None else now_ms
        temp_id = f"{TEMP_ID_PREFIX}{now_ms}-{uuid.uuid4().hex[:8]}"
        message = {
            "_id": temp_id,
            "conversationId": self.conversation_id,
            "senderId": sender_id,
            "receiverId": receiver_id,
            "content": content,
            "clientMessageId": temp_id,
            "pending": True,
        }
        self.messages.append(message)
        return message

    def _index_of(self, message_id: str) -> Optional[int]:
        for index, message in enumerate(self.messages):
            if message.get("_id") == message_id:
                return index
        return None

    def receive(self, message: dict) -> bool:
        """
        Merge a message from the server.

        Returns:
            True if the thread changed
        """
        if message.get("conversationId") != self.conversation_id:
            return False
        if self._index_of(message.get("_id")) is not None:
            return False

        client_id = message.get("clientMessageId")
        if client_id:
            index = self._index_of(client_id)
            if index is not None and self.messages[index].get("pending"):
                self.messages[index] = message
                return True

        self.messages.append(message)
        return True

    def discard_pending(self) -> int:
        """Drop optimistic messages that were never confirmed. Returns how many."""
        before = len(self.messages)
        self.messages = [m for m in self.messages if not m.get("pending")]
        return before - len(self.messages)

    @property
    def pending(self) -> List[dict]:
        return [m for m in self.messages if m.get("pending")]

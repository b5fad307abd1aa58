# Overview: In-process session token registry for authenticated users.

"""
Session Token Management

Bearer tokens are issued on login/registration and resolved on every
auth-gated request.

- Cryptographically secure random tokens (32 bytes)
- Only the SHA-256 hash of a token is kept; the plaintext goes to the client
- Fixed absolute expiry (24 hours by default), no sliding renewal
- Expired tokens are evicted lazily when they are presented
- Process-local: a restart invalidates every token
"""

from __future__ import annotations

import hashlib
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)


class SessionError(Exception):
    """Token could not be resolved to a live session."""


class InvalidSessionError(SessionError):
    """Token is unknown (never issued, logged out, or already evicted)."""


class SessionExpiredError(SessionError):
    """Token was issued but its expiry has passed."""


@dataclass(frozen=True)
class SessionContext:
    user_id: str
    created_at: datetime
    expires_at: datetime


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


class SessionStore:
    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        ttl: timedelta = SESSION_ABSOLUTE_TIMEOUT,
    ):
        self._clock = clock
        self._ttl = ttl
        self._sessions: dict[str, SessionContext] = {}
        self._lock = threading.Lock()

    def create_session(self, user_id: str) -> tuple[SessionContext, str]:
        """
        Issue a new token for user_id.

        Returns (context, plaintext_token).
        """
        token = generate_token()
        now = self._clock()
        context = SessionContext(user_id=user_id, created_at=now, expires_at=now + self._ttl)
        with self._lock:
            self._sessions[hash_token(token)] = context
        return context, token

    def resolve(self, token: str) -> SessionContext:
        """
        Return the live session for token.

        Raises InvalidSessionError for unknown tokens and SessionExpiredError
        once now >= expires_at; an expired entry is evicted on the way out.
        """
        key = hash_token(token)
        with self._lock:
            context = self._sessions.get(key)
            if context is None:
                raise InvalidSessionError("Invalid token")
            if self._clock() >= context.expires_at:
                del self._sessions[key]
                raise SessionExpiredError("Session expired")
            return context

    def destroy(self, token: str) -> bool:
        """Forget token. Returns False if it was not known."""
        with self._lock:
            return self._sessions.pop(hash_token(token), None) is not None

    def active_count(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for ctx in self._sessions.values() if now < ctx.expires_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

"""
Session Service

Binds usernames to live sockets and issues opaque session tokens (signed
JWTs) that let a reconnecting client reclaim its room seat on a new socket.
"""

import datetime
import time
import uuid
from typing import Any, Callable, Dict, Optional

import jwt

from ..models.user import ConnectedUser


class SessionService:
    """
    Connection identity registry.

    This class handles:
    - Socket id -> identity mapping for every identified connection
    - Session token issue and verification
    - Session continuity across reconnects (same session id, new socket id)
    """

    def __init__(self, token_secret: str, token_ttl_seconds: int = 86400,
                 clock: Callable[[], float] = time.time):
        """
        Args:
            token_secret: Secret key for session token signing
            token_ttl_seconds: Token lifetime
            clock: Time source (seconds since epoch)
        """
        self.token_secret = token_secret
        self.token_ttl_seconds = token_ttl_seconds
        self.clock = clock
        self.users: Dict[str, ConnectedUser] = {}  # sid -> identity

    def create_token(self, session_id: str, username: str) -> str:
        now = datetime.datetime.fromtimestamp(self.clock(), tz=datetime.timezone.utc)
        token_payload = {
            "sid": session_id,
            "username": username,
            "iat": now,
            "exp": now + datetime.timedelta(seconds=self.token_ttl_seconds)
        }
        return jwt.encode(token_payload, self.token_secret, algorithm="HS256")

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a session token.

        Returns:
            Dictionary with success status and the session claims or error
        """
        if not token:
            return {"success": False, "error": "Token is required"}

        try:
            payload = jwt.decode(
                token, self.token_secret, algorithms=["HS256"],
                options={"verify_exp": False, "verify_iat": False}
            )
        except jwt.InvalidTokenError:
            return {"success": False, "error": "Invalid token"}

        # Expiry is checked against our own clock so tests can move time
        if payload.get("exp", 0) < self.clock():
            return {"success": False, "error": "Token has expired"}

        if not payload.get("sid") or not payload.get("username"):
            return {"success": False, "error": "Invalid token payload"}

        return {
            "success": True,
            "session": {"session_id": payload["sid"], "username": payload["username"]}
        }

    def identify(self, sid: str, username: str, token: Optional[str] = None) -> Dict[str, Any]:
        """
        Associate a username with a socket.

        A valid token issued for the same username resumes that session id;
        anything else starts a fresh session. A new token is issued either way.
        """
        resumed = False
        session_id = None

        if token:
            result = self.verify_token(token)
            if result["success"] and result["session"]["username"] == username:
                session_id = result["session"]["session_id"]
                resumed = True

        if session_id is None:
            session_id = uuid.uuid4().hex

        previous = self.users.get(sid)
        self.users[sid] = ConnectedUser(
            sid=sid,
            username=username,
            session_id=session_id,
            connected_at=previous.connected_at if previous else self.clock()
        )

        return {
            "success": True,
            "username": username,
            "session_id": session_id,
            "session_token": self.create_token(session_id, username),
            "resumed": resumed
        }

    def get_user(self, sid: str) -> Optional[ConnectedUser]:
        return self.users.get(sid)

    def is_connected(self, sid: str) -> bool:
        return sid in self.users

    def forget(self, sid: str) -> Optional[ConnectedUser]:
        """Drop a socket's identity on disconnect."""
        return self.users.pop(sid, None)

    def get_active_sessions_count(self) -> int:
        return len(self.users)

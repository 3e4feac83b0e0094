# file: app/services/auth_session.py

import jwt
import logging
from typing import Awaitable, Callable, List, Optional

from app import config

logger = logging.getLogger(__name__)

AuthListener = Callable[[bool], Awaitable[None]]


def decode_session_token(token: str) -> dict:
    """
    Verifies an auth-provider access token. Without a configured secret the
    token is treated as opaque and no claims are returned.
    """
    if not config.AUTH_JWT_SECRET:
        return {}
    return jwt.decode(
        token,
        config.AUTH_JWT_SECRET,
        algorithms=[config.AUTH_JWT_ALGORITHM],
        audience=config.AUTH_JWT_AUDIENCE,
    )


class AuthSession:
    """
    Holds the bearer token for backend calls and tells listeners when the
    session flips between authenticated and signed out.
    """

    def __init__(self):
        self.token: Optional[str] = None
        self.user_id: Optional[str] = None
        self._listeners: List[AuthListener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def add_listener(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    async def sign_in(self, token: str) -> None:
        claims = decode_session_token(token)
        was_authenticated = self.is_authenticated
        self.token = token
        self.user_id = claims.get("sub")
        if not was_authenticated:
            logger.info(f"Session authenticated for user {self.user_id or 'unknown'}")
            await self._notify(True)

    async def sign_out(self) -> None:
        if not self.is_authenticated:
            return
        self.token = None
        self.user_id = None
        logger.info("Session signed out")
        await self._notify(False)

    async def _notify(self, is_authenticated: bool) -> None:
        for listener in self._listeners:
            await listener(is_authenticated)

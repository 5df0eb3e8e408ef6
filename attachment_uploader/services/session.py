"""Authentication session shared by the queue client and the run loop."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class AuthSession:
    """Holds the access token for the queue service."""

    def __init__(self, access_token: str = "", user_id: str = ""):
        self._access_token = access_token
        self._user_id = user_id

    @property
    def is_authenticated(self) -> bool:
        return bool(self._access_token)

    @property
    def user_id(self) -> str:
        return self._user_id

    def sign_in(self, access_token: str, user_id: str = "") -> None:
        self._access_token = access_token
        self._user_id = user_id
        logger.info("Session signed in (user=%s)", user_id or "-")

    def sign_out(self) -> None:
        if self._access_token:
            logger.info("Session signed out (user=%s)", self._user_id or "-")
        self._access_token = ""
        self._user_id = ""

    def auth_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

"""
Authentication Providers

DESIGN DECISION: The sync layer only needs "give me a stable user id".
Providers hide how that id is obtained:
- FirebaseAuthProvider signs in through the Identity Toolkit REST API
  (anonymous sign-up or custom token exchange)
- LocalAuthProvider hands out a fixed id for offline mode

Sign-in is attempted exactly once by the caller; providers never retry.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import requests
from pydantic import BaseModel, ConfigDict, Field

from src.config import get_settings
from src.config.settings import FirebaseSettings


IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"


class AuthenticationError(Exception):
    """Sign-in was rejected or could not be completed."""
    pass


class AuthUser(BaseModel):
    """Result of a successful sign-in."""
    model_config = ConfigDict(frozen=True)

    uid: str = Field(..., min_length=1)
    is_anonymous: bool = False
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None


class AuthProviderInterface(ABC):
    """Abstract sign-in provider."""

    @abstractmethod
    async def sign_in_anonymously(self) -> AuthUser:
        """
        Obtain a fresh anonymous identity.

        Raises:
            AuthenticationError: If sign-in fails
        """
        pass

    @abstractmethod
    async def sign_in_with_custom_token(self, token: str) -> AuthUser:
        """
        Exchange a custom token for an identity.

        Raises:
            AuthenticationError: If the token is rejected
        """
        pass


class FirebaseAuthProvider(AuthProviderInterface):
    """Firebase Auth over the Identity Toolkit REST API."""

    def __init__(
        self,
        settings: Optional[FirebaseSettings] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 20.0,
    ):
        self._settings = settings or get_settings().firebase
        self._session = session or requests.Session()
        self._timeout = timeout

    def _api_key(self) -> str:
        key = self._settings.web_api_key
        if not key:
            raise AuthenticationError(
                "Firebase web API key missing. Set FIREBASE_API_KEY or FIREBASE_CONFIG."
            )
        return key

    def _post(self, endpoint: str, payload: dict) -> dict:
        url = f"{IDENTITY_TOOLKIT_URL}/accounts:{endpoint}"
        try:
            response = self._session.post(
                url,
                params={"key": self._api_key()},
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise AuthenticationError(f"Sign-in request failed: {e}")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code != 200:
            message = data.get("error", {}).get("message") or f"HTTP {response.status_code}"
            raise AuthenticationError(message)
        if not data.get("localId"):
            raise AuthenticationError("Sign-in response did not contain a user id")
        return data

    async def sign_in_anonymously(self) -> AuthUser:
        data = await asyncio.to_thread(
            self._post, "signUp", {"returnSecureToken": True}
        )
        return AuthUser(
            uid=data["localId"],
            is_anonymous=True,
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    async def sign_in_with_custom_token(self, token: str) -> AuthUser:
        data = await asyncio.to_thread(
            self._post,
            "signInWithCustomToken",
            {"token": token, "returnSecureToken": True},
        )
        return AuthUser(
            uid=data["localId"],
            is_anonymous=False,
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )


class LocalAuthProvider(AuthProviderInterface):
    """Offline provider: every sign-in resolves to the same configured id."""

    def __init__(self, user_id: str = "local-user"):
        self._user_id = user_id

    async def sign_in_anonymously(self) -> AuthUser:
        return AuthUser(uid=self._user_id, is_anonymous=True)

    async def sign_in_with_custom_token(self, token: str) -> AuthUser:
        return AuthUser(uid=self._user_id, is_anonymous=False)

"""
Identity Bootstrap

Resolves the user id before any data access happens.

CRITICAL: Exactly one sign-in attempt is made. If it fails, the bootstrap
stays in a permanent not-ready state; nothing retries automatically. The
shell has to call `reset()` (or build a new bootstrap) to try again.
"""

import asyncio
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder
from src.services.auth import AuthProviderInterface


class IdentityState(BaseModel):
    """Snapshot of the bootstrap state. Data access requires `can_access_data`."""
    model_config = ConfigDict(frozen=True)

    ready: bool = False
    user_id: Optional[str] = None
    failed: bool = False
    error_message: Optional[str] = None

    @property
    def can_access_data(self) -> bool:
        return self.ready and bool(self.user_id)


IdentityListener = Callable[[IdentityState], None]


class IdentityBootstrap:
    """Signs in once and publishes the resulting identity state."""

    def __init__(
        self,
        auth_provider: AuthProviderInterface,
        initial_auth_token: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._auth = auth_provider
        self._token = initial_auth_token or None
        self._audit = audit_logger or AuditLogger()
        self._state = IdentityState()
        self._attempt: Optional[asyncio.Future] = None
        self._listeners: list[IdentityListener] = []

    @property
    def state(self) -> IdentityState:
        return self._state

    @property
    def attempted(self) -> bool:
        return self._attempt is not None

    def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
        """
        Receive the current state now and every later change.

        Returns a remover.
        """
        self._listeners.append(listener)
        listener(self._state)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def resolve(self) -> IdentityState:
        """
        Sign in (first call only) and return the resulting state.

        Concurrent and later calls share the outcome of the first attempt.
        """
        if self._attempt is None:
            self._attempt = asyncio.ensure_future(self._sign_in())
        return await asyncio.shield(self._attempt)

    def reset(self) -> None:
        """Forget the previous attempt so `resolve()` signs in again."""
        if self._attempt is not None and not self._attempt.done():
            self._attempt.cancel()
        self._attempt = None
        self._set_state(IdentityState())

    async def _sign_in(self) -> IdentityState:
        used_token = self._token is not None
        try:
            if used_token:
                user = await self._auth.sign_in_with_custom_token(self._token)
            else:
                user = await self._auth.sign_in_anonymously()
        except Exception as e:
            # Any sign-in failure, not just rejections, leaves us not ready
            self._audit.log(AuditEventBuilder.bootstrap_failed(str(e), used_token))
            self._set_state(IdentityState(failed=True, error_message=str(e)))
            return self._state

        self._audit.log(AuditEventBuilder.signed_in(user.uid, user.is_anonymous))
        self._set_state(IdentityState(ready=True, user_id=user.uid))
        return self._state

    def _set_state(self, state: IdentityState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)

"""Authentication services package."""

from src.services.auth.provider import (
    AuthenticationError,
    AuthProviderInterface,
    AuthUser,
    FirebaseAuthProvider,
    LocalAuthProvider,
)

__all__ = [
    "AuthenticationError",
    "AuthProviderInterface",
    "AuthUser",
    "FirebaseAuthProvider",
    "LocalAuthProvider",
]

"""Authentication of senders."""

from lucky_drop.auth.token_verifier import AuthenticatedUser
from lucky_drop.auth.token_verifier import FirebaseTokenVerifier

__all__ = [
    "AuthenticatedUser",
    "FirebaseTokenVerifier",
]

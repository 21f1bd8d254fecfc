"""Firebase ID-token verification for sender endpoints.

The Firebase Admin app is initialized lazily, on the first token verified,
using Application Default Credentials. Verification only needs Google's public
signing keys, so no service-account secret is required.
"""

import threading
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from loguru import logger

from lucky_drop.errors import AuthenticationError

FIREBASE_APP_NAME = "lucky-drop"


@dataclass(frozen=True)
class AuthenticatedUser:
    uid: str
    email: Optional[str] = None


class FirebaseTokenVerifier:
    """
    Thread-safe verifier of Firebase ID tokens.

    Attributes
    ----------
    project_id : Optional[str]
        Firebase project the tokens must be issued for
    _app : Optional[firebase_admin.App]
        Admin SDK app, created on first use
    _lock : threading.Lock
        Guards creation of ``_app``
    """

    def __init__(self, project_id: Optional[str] = None):
        self.project_id = project_id
        self._app: Optional[firebase_admin.App] = None
        self._lock = threading.Lock()

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app
        with self._lock:
            if self._app is None:
                options = {"projectId": self.project_id} if self.project_id else None
                try:
                    self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
                except ValueError:
                    self._app = firebase_admin.initialize_app(options=options, name=FIREBASE_APP_NAME)
                logger.info("Firebase Admin app initialized", project_id=self.project_id)
        return self._app

    def verify(self, token: str) -> AuthenticatedUser:
        """
        Verify an ID token.

        Raises
        ------
        AuthenticationError
            The token is malformed, expired, revoked or issued for another project
        """
        try:
            claims = firebase_auth.verify_id_token(token, app=self._get_app())
        except (
            firebase_auth.InvalidIdTokenError,
            firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError,
            firebase_auth.CertificateFetchError,
            ValueError,
        ) as e:
            logger.warning("ID token rejected", error_type=type(e).__name__)
            raise AuthenticationError("Invalid or expired authentication token") from e

        return AuthenticatedUser(uid=claims["uid"], email=claims.get("email"))

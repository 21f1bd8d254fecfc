"""Unit tests for Firebase ID-token verification."""

from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from firebase_admin import auth as firebase_auth

from lucky_drop.auth.token_verifier import FIREBASE_APP_NAME
from lucky_drop.auth.token_verifier import AuthenticatedUser
from lucky_drop.auth.token_verifier import FirebaseTokenVerifier
from lucky_drop.errors import AuthenticationError


class TestFirebaseTokenVerifier:
    @patch("lucky_drop.auth.token_verifier.firebase_auth.verify_id_token")
    @patch("lucky_drop.auth.token_verifier.firebase_admin")
    def test_verify(self, mock_firebase_admin, mock_verify):
        """A valid token yields the user; the admin app is created once."""
        mock_firebase_admin.get_app.side_effect = ValueError("no app")
        app = mock_firebase_admin.initialize_app.return_value
        mock_verify.return_value = {"uid": "alice", "email": "alice@example.com"}
        verifier = FirebaseTokenVerifier(project_id="lucky-drop-test")

        first = verifier.verify("token-1")
        verifier.verify("token-2")

        assert first == AuthenticatedUser(uid="alice", email="alice@example.com")
        mock_firebase_admin.initialize_app.assert_called_once_with(
            options={"projectId": "lucky-drop-test"}, name=FIREBASE_APP_NAME
        )
        mock_verify.assert_called_with("token-2", app=app)

    @patch("lucky_drop.auth.token_verifier.firebase_auth.verify_id_token")
    @patch("lucky_drop.auth.token_verifier.firebase_admin")
    def test_reuses_existing_app(self, mock_firebase_admin, mock_verify):
        mock_verify.return_value = {"uid": "bob"}

        user = FirebaseTokenVerifier().verify("token")

        assert user.email is None
        mock_firebase_admin.initialize_app.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [firebase_auth.InvalidIdTokenError("bad signature"), ValueError("empty token")],
        ids=["invalid_token", "malformed"],
    )
    @patch("lucky_drop.auth.token_verifier.firebase_auth.verify_id_token")
    @patch("lucky_drop.auth.token_verifier.firebase_admin")
    def test_rejected_token(self, mock_firebase_admin, mock_verify, error):
        mock_verify.side_effect = error

        with pytest.raises(AuthenticationError):
            FirebaseTokenVerifier(project_id="lucky-drop-test").verify("token")

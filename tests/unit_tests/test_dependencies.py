"""Unit tests for dependencies.py."""

from unittest.mock import MagicMock

import pytest

from lucky_drop.auth.token_verifier import AuthenticatedUser
from lucky_drop.dependencies import get_current_user
from lucky_drop.dependencies import get_existing_drop
from lucky_drop.dependencies import get_owned_drop
from lucky_drop.dependencies import get_settings
from lucky_drop.errors import AuthenticationError
from lucky_drop.errors import DropNotFoundError
from lucky_drop.errors import NotDropOwnerError
from tests.consts import ALICE_UID
from tests.consts import BOB_UID


class TestGetSettings:
    def test_reads_app_state(self, mock_settings):
        request = MagicMock()
        request.app.state.settings = mock_settings

        assert get_settings(request) is mock_settings


class TestGetCurrentUser:
    """Bearer token resolution."""

    def test_valid_token(self, mock_settings, fake_token_verifier):
        user = get_current_user("Bearer token-alice", mock_settings, fake_token_verifier)

        assert user.uid == ALICE_UID
        fake_token_verifier.verify.assert_called_once_with("token-alice")

    @pytest.mark.parametrize(
        "header",
        [None, "", "Basic dXNlcjpwYXNz", "Bearer ", "Bearer    "],
        ids=["missing", "empty", "basic_scheme", "no_token", "blank_token"],
    )
    def test_missing_or_malformed_header(self, mock_settings, fake_token_verifier, header):
        with pytest.raises(AuthenticationError):
            get_current_user(header, mock_settings, fake_token_verifier)
        fake_token_verifier.verify.assert_not_called()

    def test_rejected_token(self, mock_settings, fake_token_verifier):
        with pytest.raises(AuthenticationError):
            get_current_user("Bearer forged", mock_settings, fake_token_verifier)

    def test_lowercase_scheme(self, mock_settings, fake_token_verifier):
        assert get_current_user("bearer token-bob", mock_settings, fake_token_verifier).uid == BOB_UID

    def test_auth_disabled_uses_dev_user(self, mock_settings, fake_token_verifier):
        settings = mock_settings.model_copy(update={"auth_enabled": False})

        user = get_current_user(None, settings, fake_token_verifier)

        assert user.uid == settings.dev_user_id
        fake_token_verifier.verify.assert_not_called()


class TestDropDependencies:
    """Drop lookup and ownership."""

    def test_existing_drop(self, memory_store, random_drop):
        assert get_existing_drop(random_drop.id, memory_store).id == random_drop.id

    def test_missing_drop(self, memory_store):
        with pytest.raises(DropNotFoundError):
            get_existing_drop("missing", memory_store)

    def test_owned_drop(self, random_drop):
        assert get_owned_drop(random_drop, AuthenticatedUser(uid=ALICE_UID)) is random_drop

    def test_not_owner(self, random_drop):
        with pytest.raises(NotDropOwnerError):
            get_owned_drop(random_drop, AuthenticatedUser(uid=BOB_UID))

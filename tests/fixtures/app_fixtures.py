"""Fixtures for FastAPI application and settings."""

import sys
from pathlib import Path
from typing import Any
from typing import Dict
from typing import Optional
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import TestClient as StarletteTestClient

from tests.consts import ALICE_TOKEN
from tests.consts import ALICE_UID
from tests.consts import BOB_TOKEN
from tests.consts import BOB_UID
from tests.consts import PUBLIC_BASE_URL

# Ensure tests can import from parent directory
THIS_DIR = Path(__file__).parent
TESTS_DIR = THIS_DIR.parent
TESTS_DIR_PARENT = (TESTS_DIR / "..").resolve()
sys.path.insert(0, str(TESTS_DIR_PARENT))

# Default headers: a sender signed in as Alice
DEFAULT_TEST_HEADERS = {
    "Authorization": f"Bearer {ALICE_TOKEN}",
}


class AuthenticatedTestClient(StarletteTestClient):
    """Test client that automatically includes required authentication headers."""

    def __init__(self, *args: Any, default_headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> None:
        """Initialize with default headers."""
        super().__init__(*args, **kwargs)
        self._default_headers = default_headers or DEFAULT_TEST_HEADERS

    def _merge_headers(self, headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Merge default headers with provided headers."""
        merged = dict(self._default_headers)
        if headers:
            merged.update(headers)
        return merged

    def get(self, url: str, **kwargs: Any) -> Any:
        """GET request with default headers."""
        kwargs["headers"] = self._merge_headers(kwargs.get("headers"))
        return super().get(url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Any:
        """POST request with default headers."""
        kwargs["headers"] = self._merge_headers(kwargs.get("headers"))
        return super().post(url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> Any:
        """DELETE request with default headers."""
        kwargs["headers"] = self._merge_headers(kwargs.get("headers"))
        return super().delete(url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> Any:
        """PATCH request with default headers."""
        kwargs["headers"] = self._merge_headers(kwargs.get("headers"))
        return super().patch(url, **kwargs)


@pytest.fixture
def mock_settings():
    """Settings for tests: in-memory store, auth on, no external credentials."""
    from lucky_drop.settings import Settings

    with patch.dict(
        "os.environ",
        {
            "STORE_BACKEND": "memory",
            "AUTH_ENABLED": "true",
            "FIREBASE_PROJECT_ID": "lucky-drop-test",
            "PUBLIC_BASE_URL": PUBLIC_BASE_URL,
            "STORAGE_BUCKET": "lucky-drop-test.appspot.com",
            "LOG_LEVEL": "DEBUG",
        },
    ):
        settings = Settings(_env_file=None)
        yield settings


@pytest.fixture
def fake_token_verifier():
    """Token verifier accepting the test tokens for Alice and Bob only."""
    from lucky_drop.auth.token_verifier import AuthenticatedUser
    from lucky_drop.errors import AuthenticationError

    users = {
        ALICE_TOKEN: AuthenticatedUser(uid=ALICE_UID, email="alice@example.com"),
        BOB_TOKEN: AuthenticatedUser(uid=BOB_UID, email="bob@example.com"),
    }

    def verify(token: str):
        if token not in users:
            raise AuthenticationError("Invalid or expired authentication token")
        return users[token]

    verifier = MagicMock()
    verifier.verify.side_effect = verify
    return verifier


@pytest.fixture
def app(mock_settings, fake_token_verifier, mock_storage_client):
    """Create FastAPI test application with mocked settings and external clients."""
    from lucky_drop.main import create_app

    app = create_app(settings=mock_settings)
    app.state.token_verifier = fake_token_verifier
    app.state.media_uploader._client = mock_storage_client
    yield app


@pytest.fixture
def drop_store(app):
    """The in-memory drop store behind the test app."""
    return app.state.drop_store


@pytest.fixture
def client(app):
    """Create FastAPI test client signed in as Alice."""
    with AuthenticatedTestClient(app) as test_client:
        yield test_client


@pytest.fixture
def bob_client(app):
    """Create FastAPI test client signed in as Bob."""
    with AuthenticatedTestClient(app, default_headers={"Authorization": f"Bearer {BOB_TOKEN}"}) as test_client:
        yield test_client


@pytest.fixture
def unauthenticated_client(app):
    """Create FastAPI test client without authentication headers (recipients, auth failures)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def random_drop_id(drop_store, sample_gifts):
    """Id of a random-mode drop owned by Alice in the app's store."""
    from lucky_drop.drops.enums import DistributionMode

    return drop_store.create_drop(ALICE_UID, "Happy Birthday!", "", sample_gifts, DistributionMode.RANDOM)


@pytest.fixture
def manual_drop_id(drop_store, sample_gifts):
    """Id of a manual-mode drop owned by Alice in the app's store."""
    from lucky_drop.drops.enums import DistributionMode

    return drop_store.create_drop(ALICE_UID, "Choose one", "", sample_gifts, DistributionMode.MANUAL)


@pytest.fixture
def media_drop_id(drop_store, sample_gifts, sample_media):
    """Id of a manual-mode drop with a gifter card, owned by Alice in the app's store."""
    from lucky_drop.drops.enums import DistributionMode

    return drop_store.create_drop(
        ALICE_UID, "With a card", "Watch this first", sample_gifts, DistributionMode.MANUAL, media=sample_media
    )

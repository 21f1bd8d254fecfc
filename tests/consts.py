"""Constant values used for tests."""

from pathlib import Path

THIS_DIR = Path(__file__).parent
PROJECT_DIR = (THIS_DIR / "../").resolve()

# Base path for all API routes; must match main.py include_router(..., prefix="/api")
API_BASE = "/api"

PUBLIC_BASE_URL = "https://luckydrop.test"

# Bearer tokens accepted by the fake token verifier, and the users they map to
ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"
ALICE_UID = "alice"
BOB_UID = "bob"

# Epoch milliseconds used as the first value of the fake clock
CLOCK_START_MS = 1_767_225_600_000

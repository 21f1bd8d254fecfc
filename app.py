"""ASGI entry point for Cloud Run deployment.

This module provides the FastAPI application instance.

Usage:
    - Cloud Run: uvicorn app:app --host 0.0.0.0 --port $PORT
    - Local: uvicorn app:app --reload
"""

import sys
from pathlib import Path

# Add src to Python path for imports (MUST be before importing lucky_drop)
src_path = Path(__file__).parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Now import and create the app
from lucky_drop.main import create_app

app = create_app()

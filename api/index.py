"""Serverless entry point: re-exports the Flock ASGI app."""
import sys
from pathlib import Path

# Add project root to path so the flock package imports without installation
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from flock.main import app  # noqa: E402,F401

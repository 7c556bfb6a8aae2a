"""FastAPI backend for callgate.

This module contains:
- REST endpoints for listing and invoking remote functions
"""

from callgate.api.app import app

__all__ = [
    "app",
]

"""Core configuration, logging and security helpers."""

from .config import Settings, settings
from .logging import configure_logging
from .security import create_access_token, decode_token

__all__ = [
    "Settings",
    "settings",
    "configure_logging",
    "create_access_token",
    "decode_token",
]

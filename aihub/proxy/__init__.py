"""HTTP server for aihub."""

from .app import create_app
from .config import AppConfig, load_config
from .dependencies import extract_token, require_admin

__all__ = [
    "create_app",
    "AppConfig",
    "load_config",
    "extract_token",
    "require_admin",
]

"""Settings loading and validation."""
from .loader import load_settings
from .models import DispatchSettings, PathsSettings, ServerSettings, SessionSettings, Settings

__all__ = [
    "Settings",
    "ServerSettings",
    "SessionSettings",
    "DispatchSettings",
    "PathsSettings",
    "load_settings",
]

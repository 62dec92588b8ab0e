from .settings import Settings, settings, get_settings
from .constants import LogFormat, Environment, CONTEXT_KEYS

__all__ = [
    "Settings",
    "settings",
    "get_settings",
    "LogFormat",
    "Environment",
    "CONTEXT_KEYS",
]

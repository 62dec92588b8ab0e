"""
Application constants and enumerations.
"""

from enum import Enum


class LogFormat(str, Enum):
    """Supported log output formats."""
    JSON = "json"
    CONSOLE = "console"


class Environment(str, Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


# Keys of the per-request logging context
CONTEXT_KEYS = ("correlation_id", "evaluation_id", "evaluator_name")

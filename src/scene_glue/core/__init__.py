from .config import ConfigManager
from .exceptions import (
    SceneGlueError,
    ConfigurationError,
    GlueLoadError,
    UndefinedStepError,
    AmbiguousStepError,
    PendingStepError,
    InvalidPatternError,
)

__all__ = [
    # Configuration
    "ConfigManager",

    # Exceptions
    "SceneGlueError",
    "ConfigurationError",
    "GlueLoadError",
    "UndefinedStepError",
    "AmbiguousStepError",
    "PendingStepError",
    "InvalidPatternError",
]

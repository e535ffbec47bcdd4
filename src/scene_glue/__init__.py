"""
scene-glue - register step glue before the engine exists, run it against a shared scenario context
"""

__version__ = "0.1.0"
__author__ = "scene-glue Contributors"

from .core import ConfigManager, SceneGlueError, PendingStepError
from .glue import (
    Backend,
    ContextStore,
    DefinitionRegistry,
    ExecutionPipeline,
    step,
    before_scenario,
    after_scenario,
    before_step,
    after_step,
)

__all__ = [
    "ConfigManager",
    "SceneGlueError",
    "PendingStepError",
    "Backend",
    "ContextStore",
    "DefinitionRegistry",
    "ExecutionPipeline",
    "step",
    "before_scenario",
    "after_scenario",
    "before_step",
    "after_step",
]

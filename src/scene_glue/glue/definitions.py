import inspect
from typing import Any, Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
import logging

from .expressions import StepExpression, TagFilter

logger = logging.getLogger(__name__)

# Attribute carrying glue markers on decorated functions
GLUE_MARKER = "_glue_definitions"


@dataclass(frozen=True)
class SourceLocation:
    """File and line a definition was registered from"""
    file: str
    line: int

    @classmethod
    def of(cls, body: Callable) -> "SourceLocation":
        """Derive the location from a function's code object"""
        target = inspect.unwrap(body)
        code = getattr(target, "__code__", None)
        if code is None:
            code = getattr(getattr(target, "__call__", None), "__code__", None)
        if code is None:
            return cls(file=repr(body), line=0)
        return cls(file=code.co_filename, line=code.co_firstlineno)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class StepDefinition:
    """A step pattern and the body implementing it"""
    pattern: str
    body: Callable
    location: SourceLocation
    expression: Optional[StepExpression] = field(default=None, compare=False, repr=False)

    @property
    def info(self) -> Dict[str, Any]:
        """Step metadata handed to the body under the step key"""
        return {
            "pattern": self.pattern,
            "location": str(self.location),
            "name": getattr(self.body, "__name__", repr(self.body)),
        }


@dataclass(frozen=True)
class HookDefinition:
    """Before- or after-scenario hook, selected by tags"""
    tag_filter: TagFilter
    body: Callable
    location: SourceLocation


@dataclass(frozen=True)
class StepHook:
    """Unconditional hook run around every step"""
    body: Callable
    location: SourceLocation


@dataclass(frozen=True)
class ScenarioInfo:
    """Snapshot of scenario metadata passed to scenario hooks"""
    status: str
    failed: bool
    name: str
    id: str
    uri: str
    lines: Tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def from_scenario(cls, scenario: Any) -> "ScenarioInfo":
        """Copy the engine's scenario attributes at hook time"""
        failed = getattr(scenario, "failed", False)
        if callable(failed):
            failed = failed()
        return cls(
            status=str(getattr(scenario, "status", "")),
            failed=bool(failed),
            name=getattr(scenario, "name", ""),
            id=getattr(scenario, "id", ""),
            uri=str(getattr(scenario, "uri", "")),
            lines=tuple(getattr(scenario, "lines", ()) or ()),
        )


# Decorators marking functions as glue; a registration pass over the
# defining module registers them (see Backend.register_module).

def _mark(func: Callable, kind: str, **options) -> Callable:
    markers: List[Dict[str, Any]] = list(getattr(func, GLUE_MARKER, []))
    markers.append({"kind": kind, **options})
    setattr(func, GLUE_MARKER, markers)
    return func


def step(pattern: str):
    """Mark function as a step body for pattern"""

    def decorator(func):
        return _mark(func, "step", pattern=pattern)

    return decorator


def before_scenario(tags: Optional[Any] = None):
    """Mark function as a before-scenario hook"""

    def decorator(func):
        return _mark(func, "before_scenario", tags=tags)

    return decorator


def after_scenario(tags: Optional[Any] = None):
    """Mark function as an after-scenario hook"""

    def decorator(func):
        return _mark(func, "after_scenario", tags=tags)

    return decorator


def before_step(func: Callable) -> Callable:
    """Mark function as a before-step hook"""
    return _mark(func, "before_step")


def after_step(func: Callable) -> Callable:
    """Mark function as an after-step hook"""
    return _mark(func, "after_step")


def glue_markers(obj: Any) -> List[Dict[str, Any]]:
    """Glue markers attached to obj, in decoration order"""
    markers = getattr(obj, GLUE_MARKER, None)
    if not isinstance(markers, list):
        return []
    # Decorators apply bottom-up; report them top-down as written
    return list(reversed(markers))

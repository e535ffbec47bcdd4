import threading
from types import MappingProxyType
from typing import Any, Callable, Mapping
import logging

logger = logging.getLogger(__name__)

# Reserved context keys
WORLD_KEY = "scene/world?"
STEP_KEY = "scene/step"
EXCEPTION_KEY = "scene/exception"


def fresh_context() -> dict:
    """A newly initialised scenario context"""
    return {WORLD_KEY: True}


def is_live(context: Any) -> bool:
    """Check whether a context still carries the liveness marker"""
    return isinstance(context, Mapping) and context.get(WORLD_KEY) is True


def with_entry(context: Any, key: str, value: Any) -> dict:
    """Return a copy of context with one key set. Non-mappings are treated as empty."""
    base = dict(context) if isinstance(context, Mapping) else {}
    base[key] = value
    return base


class ContextStore:
    """
    Holds the scenario context shared by every step and hook.

    The stored value is only ever replaced, through reset() or apply().
    Bodies receive the current context and return the next one.

    apply() runs the body while holding the store lock. A body may call back
    into the store from its own thread, but work it hands to another thread
    must not call apply() or snapshot() before the body returns, or it blocks.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._context: Any = fresh_context()

    def reset(self) -> None:
        """Replace the stored context with a fresh, live one"""
        with self._lock:
            self._context = fresh_context()

    def apply(self, transform: Callable[[Any], Any], check: bool = True) -> Mapping:
        """
        Swap the stored context for transform(current).

        Args:
            transform: Function from the current context to the next one
            check: Log when the result no longer carries the liveness marker

        Returns:
            Read-only view of the stored context
        """
        with self._lock:
            new_context = transform(self._context)
            if check and not is_live(new_context):
                logger.error(
                    "The scenario step context appears to have been dropped. "
                    "(Step implementations are expected to return an updated context.)"
                )
            self._context = new_context
            return self._view(new_context)

    def snapshot(self) -> Mapping:
        """Read-only view of the current context"""
        with self._lock:
            return self._view(self._context)

    @staticmethod
    def _view(context: Any) -> Mapping:
        if isinstance(context, Mapping):
            return MappingProxyType(dict(context))
        return MappingProxyType({})

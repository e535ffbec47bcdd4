import threading
from typing import Any, Callable, List, Optional, Union
from dataclasses import dataclass, field
import logging

from .definitions import HookDefinition, SourceLocation, StepDefinition, StepHook
from .expressions import StepExpression, TagFilter

logger = logging.getLogger(__name__)


@dataclass
class Unbound:
    """No glue attached yet; step and scenario-hook registrations are queued"""
    pending_steps: List[StepDefinition] = field(default_factory=list)
    pending_before: List[HookDefinition] = field(default_factory=list)
    pending_after: List[HookDefinition] = field(default_factory=list)


@dataclass(frozen=True)
class Bound:
    """Glue attached; registrations are forwarded as they arrive"""
    glue: Any


def _identity(definition):
    return definition


class DefinitionRegistry:
    """
    Registry of step definitions and hooks for one test suite.

    Starts Unbound. bind() drains the queues into the glue in registration
    order and moves to Bound; there is no way back. Step hooks are never
    queued since they run inside the execution pipeline, not the glue.

    Args:
        step_adapter: Turns a StepDefinition into the object handed to the glue
        hook_adapter: Same for HookDefinition
    """

    def __init__(
            self,
            step_adapter: Optional[Callable[[StepDefinition], Any]] = None,
            hook_adapter: Optional[Callable[[HookDefinition], Any]] = None,
    ):
        self._lock = threading.RLock()
        self._state: Union[Unbound, Bound] = Unbound()
        self._step_adapter = step_adapter or _identity
        self._hook_adapter = hook_adapter or _identity
        self.before_step_hooks: List[StepHook] = []
        self.after_step_hooks: List[StepHook] = []

    @property
    def state(self) -> Union[Unbound, Bound]:
        return self._state

    @property
    def is_bound(self) -> bool:
        return isinstance(self._state, Bound)

    @property
    def glue(self) -> Any:
        return self._state.glue if isinstance(self._state, Bound) else None

    def register_step(self, pattern: str, body: Callable,
                      location: Optional[SourceLocation] = None) -> StepDefinition:
        """Forward a step definition to the glue, or queue it until bind()"""
        # Compiled here so a malformed pattern fails at its own call site, never during bind()
        definition = StepDefinition(
            pattern=pattern,
            body=body,
            location=location or SourceLocation.of(body),
            expression=StepExpression(pattern),
        )

        with self._lock:
            logger.debug(f"Adding step: {pattern} (bound={self.is_bound})")
            if isinstance(self._state, Bound):
                self._forward_step(self._state.glue, definition)
            else:
                self._state.pending_steps.append(definition)

        return definition

    def register_before_scenario_hook(self, tags: Any, body: Callable,
                                      location: Optional[SourceLocation] = None) -> HookDefinition:
        """Forward a before-scenario hook to the glue, or queue it until bind()"""
        definition = self._hook(tags, body, location)

        with self._lock:
            logger.debug(f"Adding before-scenario hook: {definition.location}")
            if isinstance(self._state, Bound):
                self._forward_before(self._state.glue, definition)
            else:
                self._state.pending_before.append(definition)

        return definition

    def register_after_scenario_hook(self, tags: Any, body: Callable,
                                     location: Optional[SourceLocation] = None) -> HookDefinition:
        """Forward an after-scenario hook to the glue, or queue it until bind()"""
        definition = self._hook(tags, body, location)

        with self._lock:
            logger.debug(f"Adding after-scenario hook: {definition.location}")
            if isinstance(self._state, Bound):
                self._forward_after(self._state.glue, definition)
            else:
                self._state.pending_after.append(definition)

        return definition

    def register_before_step_hook(self, body: Callable,
                                  location: Optional[SourceLocation] = None) -> StepHook:
        """Append a hook run before every step"""
        hook = StepHook(body=body, location=location or SourceLocation.of(body))
        with self._lock:
            self.before_step_hooks.append(hook)
        return hook

    def register_after_step_hook(self, body: Callable,
                                 location: Optional[SourceLocation] = None) -> StepHook:
        """Append a hook run after every step"""
        hook = StepHook(body=body, location=location or SourceLocation.of(body))
        with self._lock:
            self.after_step_hooks.append(hook)
        return hook

    def bind(self, glue: Any) -> None:
        """
        Attach the glue and forward everything queued so far.

        Binding an already bound registry only swaps the glue reference;
        definitions already forwarded are not replayed.
        """
        with self._lock:
            state = self._state
            self._state = Bound(glue)

            if isinstance(state, Bound):
                logger.debug("Registry rebound to new glue; nothing to flush")
                return

            logger.debug(
                f"Flushing {len(state.pending_steps)} steps, "
                f"{len(state.pending_before)} before hooks, "
                f"{len(state.pending_after)} after hooks"
            )
            for definition in state.pending_steps:
                self._forward_step(glue, definition)
            for definition in state.pending_before:
                self._forward_before(glue, definition)
            for definition in state.pending_after:
                self._forward_after(glue, definition)

            state.pending_steps.clear()
            state.pending_before.clear()
            state.pending_after.clear()

    def _hook(self, tags: Any, body: Callable, location: Optional[SourceLocation]) -> HookDefinition:
        tag_filter = tags if isinstance(tags, TagFilter) else TagFilter(tags)
        return HookDefinition(
            tag_filter=tag_filter,
            body=body,
            location=location or SourceLocation.of(body),
        )

    def _forward_step(self, glue: Any, definition: StepDefinition) -> None:
        glue.add_step_definition(self._step_adapter(definition))

    def _forward_before(self, glue: Any, definition: HookDefinition) -> None:
        glue.add_before_hook(self._hook_adapter(definition))

    def _forward_after(self, glue: Any, definition: HookDefinition) -> None:
        glue.add_after_hook(self._hook_adapter(definition))

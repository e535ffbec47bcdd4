from typing import Any, Sequence
import logging

from .context_store import ContextStore, EXCEPTION_KEY, STEP_KEY, with_entry
from .definitions import StepDefinition, StepHook
from .registry import DefinitionRegistry

logger = logging.getLogger(__name__)


class ExecutionPipeline:
    """
    Runs one step attempt against the context store:
    before-step hooks, the step body, after-step hooks, then the outcome.

    Only the step body's failure is captured and deferred until the
    after-step hooks have run. A failing hook propagates straight away.
    """

    def __init__(self, store: ContextStore, registry: DefinitionRegistry):
        self.store = store
        self.registry = registry

    def execute(self, definition: StepDefinition, args: Sequence[Any] = ()) -> None:
        """Execute definition with the arguments matched from the step text"""
        self._run_hooks(self.registry.before_step_hooks)

        try:
            self.store.apply(
                lambda context: definition.body(
                    with_entry(context, STEP_KEY, definition.info),
                    *args,
                )
            )
        except Exception as e:
            logger.debug(f"Step '{definition.pattern}' failed: {e}")
            self.store.apply(lambda context: with_entry(context, EXCEPTION_KEY, e), check=False)

        self._run_hooks(self.registry.after_step_hooks)

        exception = self.store.snapshot().get(EXCEPTION_KEY)
        if exception is not None:
            raise exception

    def _run_hooks(self, hooks: Sequence[StepHook]) -> None:
        for hook in list(hooks):
            self.store.apply(hook.body)

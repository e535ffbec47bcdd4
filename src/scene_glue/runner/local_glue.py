from typing import Any, Iterable, List, Tuple
import logging

from ..core.exceptions import AmbiguousStepError, UndefinedStepError
from ..glue.bridge import EngineHookDefinition, EngineStepDefinition, Glue

logger = logging.getLogger(__name__)


class LocalGlue(Glue):
    """In-process glue holding forwarded definitions for the feature runner"""

    def __init__(self):
        self.step_definitions: List[EngineStepDefinition] = []
        self.before_hooks: List[EngineHookDefinition] = []
        self.after_hooks: List[EngineHookDefinition] = []

    def add_step_definition(self, definition: EngineStepDefinition) -> None:
        self.step_definitions.append(definition)
        logger.debug(f"Registered step: {definition.pattern}")

    def add_before_hook(self, definition: EngineHookDefinition) -> None:
        self.before_hooks.append(definition)

    def add_after_hook(self, definition: EngineHookDefinition) -> None:
        self.after_hooks.append(definition)

    def find_step(self, step_text: str) -> Tuple[EngineStepDefinition, List[Any]]:
        """
        Find the step definition matching step text

        Returns:
            The definition and the argument values matched from the text

        Raises:
            UndefinedStepError: nothing matches
            AmbiguousStepError: more than one definition matches
        """
        matches = []
        for definition in self.step_definitions:
            arguments = definition.matched_arguments(step_text)
            if arguments is not None:
                matches.append((definition, arguments))

        if not matches:
            raise UndefinedStepError(step_text)
        if len(matches) > 1:
            raise AmbiguousStepError(step_text, [definition.location for definition, _ in matches])

        return matches[0]

    def before_hooks_for(self, tags: Iterable[str]) -> List[EngineHookDefinition]:
        tags = list(tags)
        return [hook for hook in self.before_hooks if hook.matches(tags)]

    def after_hooks_for(self, tags: Iterable[str]) -> List[EngineHookDefinition]:
        tags = list(tags)
        return [hook for hook in self.after_hooks if hook.matches(tags)]

    def list_definitions(self) -> List[dict]:
        """List all registered step definitions"""
        return [
            {
                'pattern': definition.pattern,
                'location': str(definition.location),
                'function': definition.definition.info['name'],
            }
            for definition in self.step_definitions
        ]

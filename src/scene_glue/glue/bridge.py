import importlib
import inspect
from abc import ABC, abstractmethod
from types import ModuleType
from typing import Any, Iterable, List, Optional, Sequence, Union
import logging

from ..core.exceptions import GlueLoadError
from .context_store import ContextStore
from .definitions import HookDefinition, ScenarioInfo, SourceLocation, StepDefinition, glue_markers
from .expressions import StepExpression
from .pipeline import ExecutionPipeline
from .registry import DefinitionRegistry
from .snippets import SnippetGenerator

logger = logging.getLogger(__name__)


class GlueDefinition(ABC):
    """What the engine can do with a forwarded definition"""

    @property
    @abstractmethod
    def location(self) -> SourceLocation:
        """Where the definition was registered"""
        pass

    @abstractmethod
    def execute(self, *args, **kwargs) -> None:
        """Run the definition against the shared context"""
        pass


class EngineStepDefinition(GlueDefinition):
    """A step definition as the engine sees it; execution goes through the pipeline"""

    def __init__(self, definition: StepDefinition, pipeline: ExecutionPipeline):
        self.definition = definition
        self.pipeline = pipeline
        self._expression = definition.expression or StepExpression(definition.pattern)

    @property
    def pattern(self) -> str:
        return self.definition.pattern

    @property
    def location(self) -> SourceLocation:
        return self.definition.location

    def matched_arguments(self, step_text: str) -> Optional[List[Any]]:
        """Argument values matched from step text, or None if it does not match"""
        return self._expression.match(step_text)

    def execute(self, args: Sequence[Any] = ()) -> None:
        self.pipeline.execute(self.definition, args)

    def is_defined_at(self, file: str, line: int) -> bool:
        return self.location.file == file and self.location.line == line

    def __repr__(self) -> str:
        return f"EngineStepDefinition({self.pattern!r} at {self.location})"


class EngineHookDefinition(GlueDefinition):
    """A scenario hook as the engine sees it"""

    order = 0

    def __init__(self, definition: HookDefinition, store: ContextStore):
        self.definition = definition
        self.store = store

    @property
    def location(self) -> SourceLocation:
        return self.definition.location

    def matches(self, tags: Iterable[str]) -> bool:
        return self.definition.tag_filter.matches(tags)

    def execute(self, scenario: Any) -> None:
        info = scenario if isinstance(scenario, ScenarioInfo) else ScenarioInfo.from_scenario(scenario)
        self.store.apply(lambda context: self.definition.body(context, info))

    def __repr__(self) -> str:
        return f"EngineHookDefinition({self.definition.tag_filter!r} at {self.location})"


class Glue(ABC):
    """Sink an engine provides for forwarded definitions"""

    @abstractmethod
    def add_step_definition(self, definition: EngineStepDefinition) -> None:
        pass

    @abstractmethod
    def add_before_hook(self, definition: EngineHookDefinition) -> None:
        pass

    @abstractmethod
    def add_after_hook(self, definition: EngineHookDefinition) -> None:
        pass


class Backend:
    """
    Connects registered glue to an engine.

    Definitions can be registered at any time; they reach the engine once
    load_glue() has bound the registry. The engine calls build_world() and
    dispose_world() around every scenario.

    Example:
        backend = Backend()
        backend.load_glue(glue, ["features.steps"])
    """

    def __init__(self, default_paths: Optional[Sequence[str]] = None, snippet_decorator: str = "step"):
        self.store = ContextStore()
        self.registry = DefinitionRegistry(
            step_adapter=self._adapt_step,
            hook_adapter=self._adapt_hook,
        )
        self.pipeline = ExecutionPipeline(self.store, self.registry)
        self.default_paths = list(default_paths) if default_paths is not None else ["steps"]
        self.snippets = SnippetGenerator(decorator=snippet_decorator)

    @classmethod
    def from_config(cls, config) -> "Backend":
        """Build a backend from a ConfigManager"""
        return cls(
            default_paths=config.get("glue.default_paths", ["steps"]),
            snippet_decorator=config.get("snippets.decorator", "step"),
        )

    def _adapt_step(self, definition: StepDefinition) -> EngineStepDefinition:
        return EngineStepDefinition(definition, self.pipeline)

    def _adapt_hook(self, definition: HookDefinition) -> EngineHookDefinition:
        return EngineHookDefinition(definition, self.store)

    # Engine-facing operations

    def load_glue(self, glue: Glue, glue_paths: Sequence[str] = ()) -> None:
        """
        Run the registration passes and bind the registry to glue

        Args:
            glue: Engine sink receiving the definitions
            glue_paths: Module names to register; empty means the default paths
        """
        logger.debug(f"Glue paths: {list(glue_paths)}")
        if len(glue_paths) == 0:
            for path in self.default_paths:
                try:
                    module = importlib.import_module(path)
                except ModuleNotFoundError as e:
                    if e.name != path and not path.startswith(f"{e.name}."):
                        raise GlueLoadError(f"Cannot load glue module '{path}': {e}") from e
                    logger.warning(f"Default glue module '{path}' not found, skipping")
                    continue
                self.register_module(module)
        else:
            for path in glue_paths:
                self.register_module(path)

        self.registry.bind(glue)

    def build_world(self) -> None:
        self.store.reset()

    def dispose_world(self) -> None:
        self.store.reset()

    def get_snippet(self, step_text: str, keyword: str = "", locale: Optional[str] = None) -> str:
        return self.snippets.generate(step_text, keyword, locale)

    # Registration

    def register_module(self, module: Union[str, ModuleType]) -> int:
        """
        Register every marked function of a module

        Returns:
            Number of definitions registered
        """
        if isinstance(module, str):
            try:
                module = importlib.import_module(module)
            except ImportError as e:
                raise GlueLoadError(f"Cannot load glue module '{module}': {e}") from e

        members = [
            obj for _, obj in inspect.getmembers(module, callable)
            if getattr(obj, "__module__", None) == module.__name__ and glue_markers(obj)
        ]
        # Source order, so definitions reach the glue in the order they were written
        members.sort(key=lambda obj: SourceLocation.of(obj).line)

        count = 0
        for obj in members:
            for marker in glue_markers(obj):
                self._register_marker(marker, obj)
                count += 1

        logger.debug(f"Registered {count} definitions from {module.__name__}")
        return count

    def _register_marker(self, marker: dict, func: Any) -> None:
        kind = marker["kind"]
        if kind == "step":
            self.registry.register_step(marker["pattern"], func)
        elif kind == "before_scenario":
            self.registry.register_before_scenario_hook(marker.get("tags"), func)
        elif kind == "after_scenario":
            self.registry.register_after_scenario_hook(marker.get("tags"), func)
        elif kind == "before_step":
            self.registry.register_before_step_hook(func)
        elif kind == "after_step":
            self.registry.register_after_step_hook(func)
        else:
            raise GlueLoadError(f"Unknown glue marker '{kind}' on {func!r}")

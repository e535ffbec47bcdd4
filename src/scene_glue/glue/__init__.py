from .context_store import ContextStore, WORLD_KEY, STEP_KEY, EXCEPTION_KEY, fresh_context
from .definitions import (
    StepDefinition,
    HookDefinition,
    StepHook,
    SourceLocation,
    ScenarioInfo,
    step,
    before_scenario,
    after_scenario,
    before_step,
    after_step,
)
from .expressions import StepExpression, TagFilter
from .registry import DefinitionRegistry, Unbound, Bound
from .pipeline import ExecutionPipeline
from .bridge import Backend, Glue, GlueDefinition, EngineStepDefinition, EngineHookDefinition
from .snippets import SnippetGenerator

__all__ = [
    'ContextStore',
    'WORLD_KEY',
    'STEP_KEY',
    'EXCEPTION_KEY',
    'fresh_context',
    'StepDefinition',
    'HookDefinition',
    'StepHook',
    'SourceLocation',
    'ScenarioInfo',
    'StepExpression',
    'TagFilter',
    'DefinitionRegistry',
    'Unbound',
    'Bound',
    'ExecutionPipeline',
    'Backend',
    'Glue',
    'GlueDefinition',
    'EngineStepDefinition',
    'EngineHookDefinition',
    'SnippetGenerator',
    'step',
    'before_scenario',
    'after_scenario',
    'before_step',
    'after_step',
]

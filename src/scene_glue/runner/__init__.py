from .executor import FeatureRunner, RunnerConfig, RunningScenario
from .local_glue import LocalGlue

__all__ = [
    'FeatureRunner',
    'RunnerConfig',
    'RunningScenario',
    'LocalGlue',
]

import re
from typing import Dict, List, Any, Optional, Union
from pathlib import Path
from datetime import datetime
from dataclasses import dataclass, field
import logging

from behave.parser import parse_feature
from behave.model import Feature, Scenario, Step

from ..core.exceptions import UndefinedStepError
from ..glue.bridge import Backend
from ..glue.expressions import TagFilter
from .local_glue import LocalGlue

logger = logging.getLogger(__name__)


@dataclass
class RunnerConfig:
    """Configuration for the feature runner"""
    glue_paths: List[str] = field(default_factory=list)
    tags: Optional[str] = None

    @classmethod
    def from_config(cls, config, **overrides) -> "RunnerConfig":
        """Build from a ConfigManager; keyword overrides win when not None"""
        values = {
            'tags': config.get('runner.tags'),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")


@dataclass
class RunningScenario:
    """Scenario state the runner exposes to scenario hooks"""
    name: str
    id: str
    uri: str
    lines: List[int]
    status: str = "passed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class FeatureRunner:
    """
    Runs Gherkin feature files against glue registered through a Backend.

    The runner is the engine side: it owns a LocalGlue, asks the backend to
    load glue into it, and drives build_world/dispose_world around every
    scenario.
    """

    def __init__(self, config: Optional[RunnerConfig] = None, backend: Optional[Backend] = None):
        self.config = config or RunnerConfig()
        self.backend = backend or Backend()
        self.glue = LocalGlue()
        self.tag_filter = TagFilter(self.config.tags)
        self._glue_loaded = False

    def load_glue(self, glue_paths: Optional[List[str]] = None) -> None:
        """Load glue modules into the runner's glue; once per run"""
        paths = self.config.glue_paths if glue_paths is None else glue_paths
        self.backend.load_glue(self.glue, paths)
        self._glue_loaded = True
        logger.info(f"Loaded {len(self.glue.step_definitions)} step definitions")

    def list_all_steps(self) -> List[Dict[str, str]]:
        """List all step definitions the glue received"""
        if not self._glue_loaded:
            self.load_glue()
        return self.glue.list_definitions()

    def execute(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Run a feature file or every feature file under a directory

        Returns:
            Run results with per-feature details and a scenario summary
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Feature path not found: {path}")

        if path.is_dir():
            feature_files = sorted(path.glob('**/*.feature'))
        else:
            feature_files = [path]

        if not self._glue_loaded:
            self.load_glue()

        results = {
            'features': [],
            'summary': {
                'total': 0,
                'passed': 0,
                'failed': 0,
                'undefined': 0,
            },
            'start_time': datetime.now().isoformat(),
        }

        for feature_file in feature_files:
            logger.info(f"Executing feature: {feature_file}")
            feature_result = self.execute_feature(feature_file)
            results['features'].append(feature_result)

            for scenario in feature_result['scenarios']:
                results['summary']['total'] += 1
                results['summary'][scenario['status']] += 1

        results['end_time'] = datetime.now().isoformat()
        results['status'] = 'passed' if all(
            f['status'] == 'passed' for f in results['features']
        ) else 'failed'

        return results

    def execute_feature(self, feature_path: Union[str, Path]) -> Dict[str, Any]:
        """Execute a single feature file"""
        feature_path = Path(feature_path)

        if not feature_path.exists():
            raise FileNotFoundError(f"Feature file not found: {feature_path}")

        if not self._glue_loaded:
            self.load_glue()

        with open(feature_path, 'r') as f:
            feature_content = f.read()

        feature = parse_feature(feature_content, filename=str(feature_path))

        result = {
            'feature': feature.name if feature else feature_path.stem,
            'file': str(feature_path),
            'scenarios': [],
            'start_time': datetime.now().isoformat(),
            'status': 'passed',
        }

        if feature is None:
            logger.warning(f"No feature found in {feature_path}")
            result['end_time'] = datetime.now().isoformat()
            return result

        for scenario in feature.walk_scenarios():
            if not self._should_run_scenario(scenario):
                logger.debug(f"Skipping scenario by tags: {scenario.name}")
                continue

            scenario_result = self._execute_scenario(feature, scenario)
            result['scenarios'].append(scenario_result)

            if scenario_result['status'] != 'passed':
                result['status'] = 'failed'

        result['end_time'] = datetime.now().isoformat()
        return result

    def _scenario_tags(self, scenario: Scenario) -> List[str]:
        tags = getattr(scenario, 'effective_tags', None)
        if tags is None:
            tags = scenario.tags
        return [str(tag) for tag in tags]

    def _should_run_scenario(self, scenario: Scenario) -> bool:
        """Check if scenario should be executed based on tags"""
        return self.tag_filter.matches(self._scenario_tags(scenario))

    def _execute_scenario(self, feature: Feature, scenario: Scenario) -> Dict[str, Any]:
        """Execute a single scenario between build_world and dispose_world"""
        tags = self._scenario_tags(scenario)
        result = {
            'name': scenario.name,
            'tags': tags,
            'line': scenario.line,
            'steps': [],
            'status': 'passed',
            'start_time': datetime.now().isoformat(),
        }

        running = RunningScenario(
            name=scenario.name,
            id=f"{_slug(feature.name)};{_slug(scenario.name)}",
            uri=str(scenario.filename),
            lines=[scenario.line],
        )

        self.backend.build_world()

        try:
            for hook in self.glue.before_hooks_for(tags):
                if not self._run_hook(hook, running, result):
                    break

            for step in scenario.all_steps:
                self._execute_step(step, running, result)

            for hook in self.glue.after_hooks_for(tags):
                self._run_hook(hook, running, result)

        finally:
            self.backend.dispose_world()
            result['status'] = running.status
            result['end_time'] = datetime.now().isoformat()

        logger.info(f"Scenario '{scenario.name}': {running.status}")
        return result

    def _run_hook(self, hook, running: RunningScenario, result: Dict[str, Any]) -> bool:
        try:
            hook.execute(running)
            return True
        except Exception as e:
            logger.error(f"Hook at {hook.location} failed: {e}")
            running.status = 'failed'
            result.setdefault('error', f"Hook at {hook.location} failed: {e}")
            return False

    def _step_arguments(self, step: Step, arguments: List[Any]) -> List[Any]:
        """Matched arguments plus the step's doc string or data table, if any"""
        arguments = list(arguments)
        if step.text is not None:
            arguments.append(str(step.text))
        elif step.table is not None:
            arguments.append([row.as_dict() for row in step.table])
        return arguments

    def _execute_step(self, step: Step, running: RunningScenario, result: Dict[str, Any]) -> None:
        """Execute a single step; steps after a failure are skipped"""
        step_result = {
            'keyword': step.keyword,
            'name': step.name,
            'line': step.line,
            'status': 'passed',
            'start_time': datetime.now().isoformat(),
        }

        try:
            if running.status != 'passed':
                step_result['status'] = 'skipped'
                return

            definition, arguments = self.glue.find_step(step.name)
            step_result['match'] = str(definition.location)
            definition.execute(self._step_arguments(step, arguments))

        except UndefinedStepError:
            snippet = self.backend.get_snippet(step.name, step.keyword)
            logger.warning(f"No step definition found for: {step.keyword} {step.name}\n{snippet}")
            step_result['status'] = 'undefined'
            step_result['snippet'] = snippet
            running.status = 'undefined'

        except Exception as e:
            step_result['status'] = 'failed'
            step_result['error'] = str(e)
            running.status = 'failed'
            result.setdefault('error', str(e))

        finally:
            step_result['end_time'] = datetime.now().isoformat()
            result['steps'].append(step_result)

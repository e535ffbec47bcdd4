"""
Thin adapters over the external matching engines.

Step patterns are cucumber expressions (``I have {int} cukes``) or, when
anchored with ``^``/``$``, regular expressions. Tag filters are cucumber tag
expressions (``@smoke and not @slow``).
"""

from typing import Any, Iterable, List, Optional, Sequence, Union
import logging

from cucumber_expressions.expression import CucumberExpression
from cucumber_expressions.parameter_type_registry import ParameterTypeRegistry
from cucumber_expressions.regular_expression import RegularExpression
from cucumber_tag_expressions import parse as parse_tag_expression

from ..core.exceptions import InvalidPatternError

logger = logging.getLogger(__name__)


class StepExpression:
    """Compiled step pattern that extracts argument values from step text"""

    def __init__(self, pattern: str, parameter_types: Optional[ParameterTypeRegistry] = None):
        self.pattern = pattern
        registry = parameter_types or ParameterTypeRegistry()
        try:
            if pattern.startswith("^") or pattern.endswith("$"):
                self._expression = RegularExpression(pattern, registry)
            else:
                self._expression = CucumberExpression(pattern, registry)
        except Exception as e:
            raise InvalidPatternError(pattern, e) from e

    def match(self, step_text: str) -> Optional[List[Any]]:
        """
        Match step text against the pattern

        Returns:
            Converted argument values, or None when the text does not match
        """
        arguments = self._expression.match(step_text)
        if arguments is None:
            return None
        return [argument.value for argument in arguments]

    def __str__(self) -> str:
        return self.pattern


class TagFilter:
    """Predicate over a scenario's tag set"""

    def __init__(self, spec: Union[None, str, Sequence[str]] = None):
        if spec is None:
            expressions = []
        elif isinstance(spec, str):
            expressions = [spec]
        else:
            expressions = list(spec)

        self.expressions = [e.strip() for e in expressions if e and e.strip()]
        self._predicates = [parse_tag_expression(e) for e in self.expressions]

    def matches(self, tags: Iterable[str]) -> bool:
        """All expressions must hold for the tags. No expressions matches everything."""
        normalized = normalize_tags(tags)
        return all(predicate.evaluate(normalized) for predicate in self._predicates)

    def __repr__(self) -> str:
        return f"TagFilter({self.expressions!r})"


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Tags as the tag-expression engine expects them, each prefixed with '@'"""
    normalized = []
    for tag in tags or []:
        tag = str(tag).strip()
        if not tag:
            continue
        normalized.append(tag if tag.startswith("@") else f"@{tag}")
    return normalized

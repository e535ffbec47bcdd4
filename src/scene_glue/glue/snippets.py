import re
from typing import List, Optional
import logging

from jinja2 import Template
from cucumber_expressions.expression_generator import CucumberExpressionGenerator
from cucumber_expressions.parameter_type_registry import ParameterTypeRegistry

logger = logging.getLogger(__name__)

SNIPPET_TEMPLATE = '''@{{ decorator }}("{{ pattern }}")
def {{ function_name }}({{ arguments|join(", ") }}):
    """Returns an updated context."""
    # {{ keyword }}{{ step_text }}
    raise PendingStepError()
'''


class SnippetGenerator:
    """Generates a step body skeleton for step text no definition matches"""

    def __init__(self, decorator: str = "step", parameter_types: Optional[ParameterTypeRegistry] = None):
        self.decorator = decorator
        self._generator = CucumberExpressionGenerator(parameter_types or ParameterTypeRegistry())
        self._template = Template(SNIPPET_TEMPLATE)

    def generate(self, step_text: str, keyword: str = "", locale: Optional[str] = None) -> str:
        """
        Render a snippet for step text

        Args:
            step_text: Text of the unmatched step
            keyword: Gherkin keyword the step was written with
            locale: Locale of the feature; parameter types here are locale independent

        Returns:
            Python source for a pending step body
        """
        if locale:
            logger.debug(f"Generating snippet for locale {locale}")

        generated = self._generator.generate_expressions(step_text)[0]
        pattern = generated.source

        return self._template.render(
            decorator=self.decorator,
            pattern=self.escape_pattern(pattern),
            function_name=self.function_name(pattern),
            arguments=["context"] + self.argument_names(generated.parameter_names),
            keyword=f"{keyword.strip()} " if keyword and keyword.strip() else "",
            step_text=step_text,
        )

    @staticmethod
    def escape_pattern(pattern: str) -> str:
        return pattern.replace("\\", "\\\\").replace('"', '\\"')

    @staticmethod
    def function_name(pattern: str) -> str:
        """Lower-case words of the pattern, parameters and quoted text removed, joined by '_'"""
        text = re.sub(r"\{[^}]*\}", " ", pattern)
        text = re.sub(r'"[^"]*"', " ", text)
        words = re.findall(r"[A-Za-z0-9]+", text)
        name = "_".join(word.lower() for word in words)
        if not name or name[0].isdigit():
            name = f"step_{name}".rstrip("_")
        return name

    @staticmethod
    def argument_names(parameter_names: List[str]) -> List[str]:
        """Number every parameter so names never shadow builtins such as int"""
        return [name if name[-1:].isdigit() else f"{name}1" for name in parameter_names]

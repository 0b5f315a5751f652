"""
Prompt Template Node.

Fills ``{{name}}`` placeholders in a template from the input, falling
back to run variables.
"""

from typing import Any, Dict, List, Optional
from pydantic import Field
import re

from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.errors import NodeConfigurationError
from nodeflow.engine.types import NodeType
from nodeflow.nodes.base import BaseNode, NodeConfig, to_text


class PromptTemplateConfig(NodeConfig):
    template: Optional[str] = None
    variables: List[str] = Field(default_factory=list)


class PromptTemplateNode(BaseNode):
    """
    Render the configured template.
    
    Each declared variable is taken from the input when the input is a
    dict; a scalar input fills the first declared variable. Missing values
    fall back to ``context.variables`` and then to an empty string.
    """

    node_type = NodeType.PROMPT_TEMPLATE
    config_model = PromptTemplateConfig

    async def execute(self, input: Any, context: ExecutionContext) -> Any:
        try:
            self.validate_input(input)

            variables = self.config.variables
            values: Dict[str, Any] = {}
            if isinstance(input, dict):
                values = input
            elif variables:
                values = {variables[0]: input}

            result = self.config.template
            for name in variables:
                value = values.get(name)
                if value is None:
                    value = context.variables.get(name)
                if value is None:
                    value = ""
                pattern = r"\{\{\s*" + re.escape(name) + r"\s*\}\}"
                rendered = to_text(value)
                result = re.sub(pattern, lambda _: rendered, result)

            return result
        except Exception as e:
            self.handle_error(e)

    def validate_input(self, input: Any) -> None:
        if not self.config.template:
            raise NodeConfigurationError("Template is required in node configuration")

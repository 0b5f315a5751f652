"""
User Input Node.

Entry node that passes the run input (or its configured default)
through to the rest of the workflow.
"""

from typing import Any, Optional
from pydantic import Field

from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.errors import NodeInputError
from nodeflow.engine.types import NodeType
from nodeflow.nodes.base import BaseNode, NodeConfig


class InputValidation(NodeConfig):
    required: bool = False
    min_length: Optional[int] = Field(None, alias="minLength")
    max_length: Optional[int] = Field(None, alias="maxLength")


class UserInputConfig(NodeConfig):
    input_type: str = Field("text", alias="inputType")
    default_value: Any = Field(None, alias="defaultValue")
    validation: Optional[InputValidation] = None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


class UserInputNode(BaseNode):
    """Pass-through of ``input``, else ``defaultValue``, else ``""``."""

    node_type = NodeType.USER_INPUT
    config_model = UserInputConfig

    async def execute(self, input: Any, context: ExecutionContext) -> Any:
        try:
            self.validate_input(input)

            value = input
            if value is None:
                value = self.config.default_value
            if value is None:
                value = ""

            rules = self.config.validation
            if rules:
                if rules.required and _is_blank(value):
                    raise NodeInputError("Input is required")
                length = len(value) if hasattr(value, "__len__") else None
                if rules.min_length and length is not None and length < rules.min_length:
                    raise NodeInputError(
                        f"Input must be at least {rules.min_length} characters"
                    )
                if rules.max_length and length is not None and length > rules.max_length:
                    raise NodeInputError(
                        f"Input must be no more than {rules.max_length} characters"
                    )

            return value
        except Exception as e:
            self.handle_error(e)

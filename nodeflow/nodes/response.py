"""
Response Node.

Formats a terminal value and wraps it with run metadata.
"""

from typing import Any, Optional
from datetime import datetime, timezone
import re

from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.types import NodeType
from nodeflow.nodes.base import BaseNode, NodeConfig, to_json, to_text


DATA_PLACEHOLDER = re.compile(r"\{\{data\.(\w+)\}\}")
CONTEXT_PLACEHOLDER = re.compile(r"\{\{context\.(\w+)\}\}")


class ResponseConfig(NodeConfig):
    format: str = "json"
    template: Optional[str] = None


class ResponseNode(BaseNode):
    """
    Format the input as ``json`` (unchanged), ``text``, ``template`` or
    ``markdown``.

    Returns:
        Dict with ``format``, ``content`` and ``metadata`` (executionId,
        timestamp, userId)
    """

    node_type = NodeType.RESPONSE
    config_model = ResponseConfig

    async def execute(self, input: Any, context: ExecutionContext) -> Any:
        try:
            fmt = self.config.format

            if fmt == "text":
                content = input if isinstance(input, str) else to_json(input, indent=2)
            elif fmt == "template" and self.config.template:
                content = self.apply_template(self.config.template, input, context)
            elif fmt == "markdown":
                content = self.format_as_markdown(input)
            else:
                content = input

            return {
                "format": fmt,
                "content": content,
                "metadata": {
                    "executionId": context.execution_id,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "userId": context.user_id,
                },
            }
        except Exception as e:
            self.handle_error(e)

    @staticmethod
    def apply_template(template: str, data: Any, context: ExecutionContext) -> str:
        """Fill ``{{data.x}}`` and ``{{context.x}}``; unresolved placeholders stay."""
        def data_value(match):
            value = data.get(match.group(1)) if isinstance(data, dict) else None
            return match.group(0) if value is None else to_text(value)

        def context_value(match):
            value = context.lookup(match.group(1))
            return match.group(0) if value is None else to_text(value)

        result = DATA_PLACEHOLDER.sub(data_value, template)
        return CONTEXT_PLACEHOLDER.sub(context_value, result)

    @staticmethod
    def format_as_markdown(value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, (list, tuple)):
            return "\n".join(f"{i}. {to_json(item)}" for i, item in enumerate(value, 1))
        if isinstance(value, dict):
            return "\n\n".join(f"**{key}**: {to_json(item)}" for key, item in value.items())
        return to_text(value)

"""
Conditional Node and condition evaluation.

``evaluate_condition`` implements the eight ConditionOperator tests. It is
shared by the conditional node and by edge-condition routing in the
engine, so both agree on the semantics.
"""

from typing import Any, Optional
import math

from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.errors import NodeConfigurationError
from nodeflow.engine.types import ConditionOperator, NodeType
from nodeflow.nodes.base import BaseNode, NodeConfig, to_text


class ConditionalConfig(NodeConfig):
    field: str = ""
    operator: Optional[str] = None
    value: Any = None


def get_field_value(data: Any, field: Optional[str]) -> Any:
    """
    Resolve a dotted path such as ``"user.name"`` against ``data``.

    An empty path returns ``data`` itself. Returns None as soon as a
    segment is missing or the current value is not a container.
    """
    if not field:
        return data

    value = data
    for part in field.split("."):
        if isinstance(value, dict):
            value = value.get(part)
        elif isinstance(value, (list, tuple)) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else None
        else:
            return None
    return value


def to_number(value: Any) -> float:
    """Numeric cast; values with no numeric reading become NaN."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def loose_equals(left: Any, right: Any) -> bool:
    """Equality that treats numbers, numeric strings and booleans alike."""
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool) or isinstance(right, bool):
        if isinstance(left, bool) and isinstance(right, bool):
            return left == right
        return to_number(left) == to_number(right)
    if isinstance(left, (int, float)) and isinstance(right, str):
        return left == to_number(right)
    if isinstance(left, str) and isinstance(right, (int, float)):
        return to_number(left) == right
    return left == right


def is_empty(value: Any) -> bool:
    """Empty string (after strip), empty list/dict, or a falsy value."""
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    if isinstance(value, float) and math.isnan(value):
        return True
    return not value


def evaluate_condition(field_value: Any, operator: Any, expected: Any) -> bool:
    """
    Evaluate ``field_value <operator> expected``.

    Raises:
        NodeConfigurationError: If operator is not a ConditionOperator value
    """
    try:
        op = ConditionOperator(operator)
    except ValueError:
        raise NodeConfigurationError(f"Unknown operator: {operator}") from None

    if op == ConditionOperator.EQUALS:
        return loose_equals(field_value, expected)
    if op == ConditionOperator.NOT_EQUALS:
        return not loose_equals(field_value, expected)
    if op == ConditionOperator.GREATER_THAN:
        return to_number(field_value) > to_number(expected)
    if op == ConditionOperator.LESS_THAN:
        return to_number(field_value) < to_number(expected)
    if op == ConditionOperator.CONTAINS:
        return to_text(expected) in to_text(field_value)
    if op == ConditionOperator.NOT_CONTAINS:
        return to_text(expected) not in to_text(field_value)
    if op == ConditionOperator.IS_EMPTY:
        return is_empty(field_value)
    return not is_empty(field_value)


class ConditionalNode(BaseNode):
    """
    Test a field of the input and report which output port is active.

    Returns:
        Dict with the original ``input``, ``conditionMet``, the tested
        ``field``/``fieldValue``, ``expectedValue`` and ``outputPort``
        (``"true"`` or ``"false"``)
    """

    node_type = NodeType.CONDITIONAL
    config_model = ConditionalConfig

    async def execute(self, input: Any, context: ExecutionContext) -> Any:
        try:
            self.validate_input(input)

            field = self.config.field
            field_value = get_field_value(input, field)
            condition_met = evaluate_condition(
                field_value, self.config.operator, self.config.value
            )

            return {
                "input": input,
                "conditionMet": condition_met,
                "field": field,
                "fieldValue": field_value,
                "expectedValue": self.config.value,
                "outputPort": "true" if condition_met else "false",
            }
        except Exception as e:
            self.handle_error(e)

    def validate_input(self, input: Any) -> None:
        if not self.config.operator:
            raise NodeConfigurationError("Operator is required in node configuration")

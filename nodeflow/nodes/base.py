"""
Node Handler Contract and Registry.

Every node kind is a BaseNode subclass bound to one WorkflowNode. The
engine only ever calls ``execute(input, context)``; handlers validate
their own configuration and input and raise on misconfiguration.
"""

from typing import Any, Callable, ClassVar, Dict, List, NoReturn, Optional, Type, Union
from abc import ABC, abstractmethod
from pydantic import BaseModel, ValidationError
import json
import logging

from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.errors import NodeConfigurationError, UnknownNodeTypeError
from nodeflow.engine.types import NodeType, WorkflowNode


logger = logging.getLogger(__name__)


class NodeConfig(BaseModel):
    """Base for the typed configuration shape of a node kind."""

    class Config:
        populate_by_name = True
        extra = "allow"


class BaseNode(ABC):
    """
    A handler bound to a single workflow node.

    Subclasses declare their ``node_type`` and ``config_model`` and
    implement ``execute``. The raw ``data.config`` dict is parsed into
    ``config_model`` at construction.

    Attributes:
        id: The workflow node's id
        type: The workflow node's type
        label: Display label
        config: Parsed configuration
    """

    node_type: ClassVar[Optional[NodeType]] = None
    config_model: ClassVar[Type[NodeConfig]] = NodeConfig

    def __init__(self, node: WorkflowNode):
        self.id = node.id
        self.type = node.type
        self.label = node.label
        try:
            self.config = self.config_model.model_validate(node.config or {})
        except ValidationError as e:
            raise NodeConfigurationError(
                f"Invalid configuration for node '{node.id}': {e}"
            ) from e

    @abstractmethod
    async def execute(self, input: Any, context: ExecutionContext) -> Any:
        """
        Run the node.

        Args:
            input: Upstream result(s), or the run input for start nodes
            context: The run's execution context

        Returns:
            The node result, passed to downstream nodes
        """

    def validate_input(self, input: Any) -> None:
        """Validate input and configuration before doing any work."""

    def handle_error(self, error: Exception) -> NoReturn:
        """Log the error with the node id and re-raise it."""
        logger.error(f"Error in node {self.id}: {error}")
        raise error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id='{self.id}')"


NodeClass = Type[BaseNode]


def to_json(value: Any, indent: Optional[int] = None) -> str:
    """Serialize a node value to JSON (compact unless ``indent`` is given)."""
    if indent is None:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return json.dumps(value, indent=indent, ensure_ascii=False, default=str)


def to_text(value: Any) -> str:
    """Render a value for substitution into a template or URL."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return to_json(value)
    return str(value)


def coerce_node_type(node_type: Union[NodeType, str]) -> NodeType:
    """Convert a type tag to NodeType, raising UnknownNodeTypeError if it is not one."""
    if isinstance(node_type, NodeType):
        return node_type
    try:
        return NodeType(node_type)
    except ValueError:
        raise UnknownNodeTypeError(str(node_type)) from None


class NodeRegistry:
    """
    Registry for additional node handler classes.

    One registry is constructed at application start and handed to the
    NodeFactory; tests build their own.

    Usage:
        registry = NodeRegistry()

        @registry.node(NodeType.WAIT)
        class WaitNode(BaseNode):
            async def execute(self, input, context):
                return input

        # Later
        cls = registry.get(NodeType.WAIT)
    """

    def __init__(self):
        self._nodes: Dict[NodeType, NodeClass] = {}

    def register(self, node_type: Union[NodeType, str], node_class: NodeClass) -> None:
        """
        Register a handler class for a node type.

        Args:
            node_type: A NodeType member or its string value
            node_class: BaseNode subclass to construct for that type

        Raises:
            UnknownNodeTypeError: If node_type is not a NodeType value
            TypeError: If node_class is not a BaseNode subclass
        """
        key = coerce_node_type(node_type)
        if not (isinstance(node_class, type) and issubclass(node_class, BaseNode)):
            raise TypeError(f"Handler for '{key.value}' must be a BaseNode subclass")
        self._nodes[key] = node_class
        logger.debug(f"Registered node type: {key.value} -> {node_class.__name__}")

    def node(self, node_type: Union[NodeType, str]) -> Callable[[NodeClass], NodeClass]:
        """Decorator form of ``register``."""
        def decorator(node_class: NodeClass) -> NodeClass:
            self.register(node_type, node_class)
            return node_class
        return decorator

    def get(self, node_type: Union[NodeType, str]) -> Optional[NodeClass]:
        """Get the handler class for a type, or None."""
        try:
            return self._nodes.get(coerce_node_type(node_type))
        except UnknownNodeTypeError:
            return None

    def unregister(self, node_type: Union[NodeType, str]) -> bool:
        """Remove a registered type."""
        if self.get(node_type) is None:
            return False
        del self._nodes[coerce_node_type(node_type)]
        return True

    def get_all(self) -> Dict[NodeType, NodeClass]:
        """All registered types and classes."""
        return dict(self._nodes)

    def list_types(self) -> List[NodeType]:
        return list(self._nodes)

    def __contains__(self, node_type: Union[NodeType, str]) -> bool:
        return self.get(node_type) is not None

    def __len__(self) -> int:
        return len(self._nodes)

"""
Node Factory.

Turns a WorkflowNode into a handler instance. Built-in kinds are always
available; other NodeType values must be registered in a NodeRegistry.
"""

from typing import Dict, List, Optional, Type, Union
import logging

from nodeflow.engine.errors import UnknownNodeTypeError
from nodeflow.engine.types import NodeType, WorkflowNode
from nodeflow.nodes.base import BaseNode, NodeRegistry, coerce_node_type
from nodeflow.nodes.conditional import ConditionalNode
from nodeflow.nodes.http_request import HTTPRequestNode
from nodeflow.nodes.llm_agent import LLMAgentNode
from nodeflow.nodes.prompt_template import PromptTemplateNode
from nodeflow.nodes.rag_search import RAGSearchNode
from nodeflow.nodes.response import ResponseNode
from nodeflow.nodes.user_input import UserInputNode


logger = logging.getLogger(__name__)


BUILTIN_NODES: Dict[NodeType, Type[BaseNode]] = {
    cls.node_type: cls
    for cls in (
        UserInputNode,
        LLMAgentNode,
        RAGSearchNode,
        PromptTemplateNode,
        ConditionalNode,
        HTTPRequestNode,
        ResponseNode,
    )
}


class NodeFactory:
    """
    Builds node handlers for workflow nodes.

    A class registered in the registry takes precedence over the built-in
    handler for the same type.

    Usage:
        factory = NodeFactory(registry)
        handler = factory.create_node(workflow_node)
        result = await handler.execute(input, context)
    """

    def __init__(self, registry: Optional[NodeRegistry] = None):
        self.registry = registry if registry is not None else NodeRegistry()

    def get_node_class(self, node_type: Union[NodeType, str]) -> Optional[Type[BaseNode]]:
        """Handler class for a type, or None if there is none."""
        registered = self.registry.get(node_type)
        if registered is not None:
            return registered
        try:
            return BUILTIN_NODES.get(coerce_node_type(node_type))
        except UnknownNodeTypeError:
            return None

    def create_node(self, node: WorkflowNode) -> BaseNode:
        """
        Construct the handler bound to ``node``.

        Raises:
            UnknownNodeTypeError: If no handler exists for ``node.type``
            NodeConfigurationError: If the config does not fit the handler
        """
        node_type = node.type.value if isinstance(node.type, NodeType) else str(node.type)
        node_class = self.get_node_class(node_type)
        if node_class is None:
            raise UnknownNodeTypeError(node_type)
        return node_class(node)

    def available_types(self) -> List[NodeType]:
        """All types this factory can build, in NodeType order."""
        return [t for t in NodeType if self.get_node_class(t) is not None]

    @staticmethod
    def is_builtin(node_type: Union[NodeType, str]) -> bool:
        try:
            return coerce_node_type(node_type) in BUILTIN_NODES
        except UnknownNodeTypeError:
            return False

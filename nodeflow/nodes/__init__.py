"""
Nodes package - Node handler contract, registry, factory and built-ins.
"""

from nodeflow.nodes.base import BaseNode, NodeConfig, NodeRegistry
from nodeflow.nodes.factory import BUILTIN_NODES, NodeFactory
from nodeflow.nodes.conditional import ConditionalNode, evaluate_condition, get_field_value
from nodeflow.nodes.http_request import HTTPRequestNode
from nodeflow.nodes.llm_agent import LLMAgentNode
from nodeflow.nodes.prompt_template import PromptTemplateNode
from nodeflow.nodes.rag_search import RAGSearchNode
from nodeflow.nodes.response import ResponseNode
from nodeflow.nodes.user_input import UserInputNode

__all__ = [
    "BaseNode",
    "NodeConfig",
    "NodeRegistry",
    "NodeFactory",
    "BUILTIN_NODES",
    "ConditionalNode",
    "HTTPRequestNode",
    "LLMAgentNode",
    "PromptTemplateNode",
    "RAGSearchNode",
    "ResponseNode",
    "UserInputNode",
    "evaluate_condition",
    "get_field_value",
]

"""
Shared fixtures: a recording node handler and fake service providers.
"""

from typing import Any, Dict, List, Optional
import asyncio

import pytest

from nodeflow.engine.types import NodeType, WorkflowDefinition
from nodeflow.nodes.base import BaseNode, NodeConfig, NodeRegistry
from nodeflow.nodes.factory import NodeFactory
from nodeflow.services.agents import InMemoryAgentStore
from nodeflow.services.base import Services


def build_workflow(nodes: List[Dict[str, Any]], edges: List[Dict[str, Any]], **extra: Any) -> WorkflowDefinition:
    """Build a definition from the camelCase JSON shape the editor saves."""
    payload = {"id": "wf-test", "name": "Test workflow", "nodes": [], "edges": []}
    payload.update(extra)
    for node in nodes:
        node = dict(node)
        config = node.pop("config", {})
        node.setdefault("data", {"label": node["id"], "config": config})
        payload["nodes"].append(node)
    for i, edge in enumerate(edges):
        payload["edges"].append({"id": f"e{i}", **edge})
    return WorkflowDefinition.model_validate(payload)


class RecordConfig(NodeConfig):
    output: Any = None
    delay: float = 0.0
    fail: Optional[str] = None


@pytest.fixture
def calls() -> List[tuple]:
    """(node_id, input) pairs in invocation order."""
    return []


@pytest.fixture
def registry(calls) -> NodeRegistry:
    """
    Registry with a recording handler bound to the ``text_processor`` type.

    The handler returns its configured ``output``, or ``"<id>(<input>)"``.
    """

    class RecordNode(BaseNode):
        config_model = RecordConfig

        async def execute(self, input, context):
            calls.append((self.id, input))
            if self.config.delay:
                await asyncio.sleep(self.config.delay)
            if self.config.fail:
                raise RuntimeError(self.config.fail)
            if self.config.output is not None:
                return self.config.output
            return f"{self.id}({input})"

    registry = NodeRegistry()
    registry.register(NodeType.TEXT_PROCESSOR, RecordNode)
    return registry


@pytest.fixture
def make_workflow():
    return build_workflow


@pytest.fixture
def factory(registry) -> NodeFactory:
    return NodeFactory(registry)


class FakeLLM:
    """Chat completion provider that echoes the last user message."""

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []

    async def __call__(self, model, messages, temperature=None, max_tokens=None, user_id=None):
        self.requests.append({
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "user_id": user_id,
        })
        return {
            "content": f"echo: {messages[-1]['content']}",
            "usage": {"promptTokens": 3, "completionTokens": 2, "totalTokens": 5},
        }


class FakeSearch:
    """Document search provider over a fixed list of hits."""

    def __init__(self, hits: List[Dict[str, Any]]):
        self.hits = hits
        self.requests: List[Dict[str, Any]] = []

    async def __call__(self, collection_id, query, top_k, similarity_threshold):
        self.requests.append({
            "collection_id": collection_id,
            "query": query,
            "top_k": top_k,
            "similarity_threshold": similarity_threshold,
        })
        return [h for h in self.hits if h["similarity"] >= similarity_threshold][:top_k]


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_search() -> FakeSearch:
    return FakeSearch([
        {"content": "Paris is the capital of France.", "metadata": {"page": 1}, "similarity": 0.92, "documentId": "doc-1"},
        {"content": "France is in Europe.", "metadata": {}, "similarity": 0.81, "documentId": "doc-2"},
        {"content": "Unrelated text.", "metadata": {}, "similarity": 0.2, "documentId": "doc-3"},
    ])


@pytest.fixture
def agent_store() -> InMemoryAgentStore:
    return InMemoryAgentStore([
        {
            "id": "helper",
            "name": "Helper",
            "modelId": "gpt-4o-mini",
            "systemPrompt": "You are helpful.",
            "temperature": 0.3,
            "maxTokens": 256,
        }
    ])


@pytest.fixture
def services(agent_store, fake_llm, fake_search) -> Services:
    return Services(
        get_agent=agent_store.get,
        chat_completion=fake_llm,
        search_documents=fake_search,
    )

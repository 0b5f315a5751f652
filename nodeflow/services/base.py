"""
External service capabilities injected into a run.

Node handlers reach LLMs, document search and the web only through the
callables collected in ``Services``. Each capability is optional; a
handler that needs an absent one fails with ServiceUnavailableError.
"""

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
from dataclasses import dataclass
from pydantic import BaseModel, Field
import httpx


class AgentProfile(BaseModel):
    """Agent configuration as returned by the agent store."""
    id: str
    name: str = ""
    model_id: str = Field(..., alias="modelId")
    system_prompt: Optional[str] = Field(None, alias="systemPrompt")
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(None, alias="maxTokens")

    class Config:
        populate_by_name = True


class ChatCompletion(BaseModel):
    """Result of a chat completion call."""
    content: str = ""
    usage: Optional[Dict[str, Any]] = None


class SearchResult(BaseModel):
    """A single document-search hit."""
    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    similarity: float = 0.0
    document_id: Optional[str] = Field(None, alias="documentId")

    class Config:
        populate_by_name = True


AgentLookup = Callable[[str], Awaitable[Any]]
ChatCompletionFn = Callable[..., Awaitable[Any]]
DocumentSearchFn = Callable[..., Awaitable[List[Any]]]
WebSearchFn = Callable[..., Awaitable[Any]]


@dataclass
class Services:
    """
    Bag of capability handles available to node handlers.

    Attributes:
        get_agent: ``await get_agent(agent_id)`` -> agent profile or None
        chat_completion: ``await chat_completion(model=, messages=,
            temperature=, max_tokens=, user_id=)`` -> completion
        search_documents: ``await search_documents(collection_id=, query=,
            top_k=, similarity_threshold=)`` -> list of hits
        web_search: reserved for web search nodes
        http_client: shared client for HTTP request nodes
    """
    get_agent: Optional[AgentLookup] = None
    chat_completion: Optional[ChatCompletionFn] = None
    search_documents: Optional[DocumentSearchFn] = None
    web_search: Optional[WebSearchFn] = None
    http_client: Optional[httpx.AsyncClient] = None


def coerce_model(model_cls, value: Any):
    """Coerce a service return value (model, mapping or object) into ``model_cls``."""
    if value is None or isinstance(value, model_cls):
        return value
    if isinstance(value, Mapping):
        return model_cls.model_validate(dict(value))
    return model_cls.model_validate(value, from_attributes=True)

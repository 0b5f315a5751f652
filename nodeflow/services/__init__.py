"""
Services package - Capability handles injected into workflow runs.
"""

from nodeflow.services.base import (
    AgentProfile,
    ChatCompletion,
    SearchResult,
    Services,
)
from nodeflow.services.agents import InMemoryAgentStore

__all__ = [
    "AgentProfile",
    "ChatCompletion",
    "SearchResult",
    "Services",
    "InMemoryAgentStore",
]

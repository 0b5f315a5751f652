"""
In-memory agent store.

Provides the agent-lookup capability for LLM agent nodes. Can be
replaced with a database-backed implementation with the same
``get`` coroutine.
"""

from typing import Any, Dict, List, Mapping, Optional, Union
import asyncio

from nodeflow.services.base import AgentProfile, coerce_model


class InMemoryAgentStore:
    """
    Thread-safe in-memory storage for agent profiles.
    
    Usage:
        store = InMemoryAgentStore()
        await store.save({"id": "helper", "modelId": "gpt-4o-mini"})
        services = Services(get_agent=store.get, ...)
    """
    
    def __init__(self, agents: Optional[List[Union[AgentProfile, Mapping[str, Any]]]] = None):
        self._agents: Dict[str, AgentProfile] = {}
        self._lock = asyncio.Lock()
        for agent in agents or []:
            profile = coerce_model(AgentProfile, agent)
            self._agents[profile.id] = profile
    
    async def save(self, agent: Union[AgentProfile, Mapping[str, Any]]) -> AgentProfile:
        """Save or replace an agent profile."""
        profile = coerce_model(AgentProfile, agent)
        async with self._lock:
            self._agents[profile.id] = profile
            return profile
    
    async def get(self, agent_id: str) -> Optional[AgentProfile]:
        """Get an agent by ID."""
        async with self._lock:
            return self._agents.get(agent_id)
    
    async def delete(self, agent_id: str) -> bool:
        """Delete an agent."""
        async with self._lock:
            if agent_id in self._agents:
                del self._agents[agent_id]
                return True
            return False
    
    async def list_all(self) -> List[AgentProfile]:
        """List all agents."""
        async with self._lock:
            return list(self._agents.values())
    
    def __len__(self) -> int:
        return len(self._agents)

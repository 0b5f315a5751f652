"""
LLM Agent Node.

Sends the node input to a configured agent's model through the injected
chat-completion service.
"""

from typing import Any, Dict, List, Optional
from pydantic import Field

from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.errors import (
    DependencyNotFoundError,
    NodeConfigurationError,
    NodeInputError,
    ServiceUnavailableError,
)
from nodeflow.engine.types import NodeType
from nodeflow.nodes.base import BaseNode, NodeConfig, to_json
from nodeflow.services.base import AgentProfile, ChatCompletion, coerce_model


class LLMAgentConfig(NodeConfig):
    agent_id: Optional[str] = Field(None, alias="agentId")
    system_prompt: Optional[str] = Field(None, alias="systemPrompt")
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(None, alias="maxTokens")


class LLMAgentNode(BaseNode):
    """
    Call an LLM agent with the node input as the user turn.
    
    The agent is loaded by id from the agent store. The system prompt and
    sampling parameters in the node config override the agent's own.
    
    Returns:
        Dict with ``content``, ``model`` and ``usage``
    """

    node_type = NodeType.LLM_AGENT
    config_model = LLMAgentConfig

    async def execute(self, input: Any, context: ExecutionContext) -> Any:
        try:
            self.validate_input(input)

            services = context.services
            if services.get_agent is None:
                raise ServiceUnavailableError("Agent lookup service is not configured")
            if services.chat_completion is None:
                raise ServiceUnavailableError("LLM completion service is not configured")

            agent_id = self.config.agent_id
            agent = coerce_model(AgentProfile, await services.get_agent(agent_id))
            if agent is None:
                raise DependencyNotFoundError(f"Agent not found: {agent_id}")

            messages = self.build_messages(input, agent)

            temperature = self.config.temperature
            if temperature is None:
                temperature = agent.temperature
            max_tokens = self.config.max_tokens
            if max_tokens is None:
                max_tokens = agent.max_tokens

            response = coerce_model(ChatCompletion, await services.chat_completion(
                model=agent.model_id,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                user_id=context.user_id,
            ))

            return {
                "content": response.content,
                "model": agent.model_id,
                "usage": response.usage,
            }
        except Exception as e:
            self.handle_error(e)

    def build_messages(self, input: Any, agent: AgentProfile) -> List[Dict[str, str]]:
        """System prompt (config, else agent default) followed by the input."""
        messages = []
        system_prompt = self.config.system_prompt or agent.system_prompt
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        user_message = input if isinstance(input, str) else to_json(input)
        messages.append({"role": "user", "content": user_message})
        return messages

    def validate_input(self, input: Any) -> None:
        if input is None or input == "":
            raise NodeInputError("Input is required for LLM Agent node")
        if not self.config.agent_id:
            raise NodeConfigurationError("Agent ID is required in node configuration")

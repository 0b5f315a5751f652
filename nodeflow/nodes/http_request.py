"""
HTTP Request Node.

Issues an outbound HTTP request with httpx. The URL may reference
``{{input.field}}`` and ``{{context.field}}`` placeholders.
"""

from typing import Any, Dict, Optional
from pydantic import Field
import asyncio
import logging

import httpx

from nodeflow.config import settings
from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.errors import NodeConfigurationError, RequestTimeoutError
from nodeflow.engine.types import NodeType
from nodeflow.nodes.base import BaseNode, NodeConfig, to_json, to_text


logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
BODY_METHODS = ("POST", "PUT", "PATCH")


class HTTPRequestConfig(NodeConfig):
    url: Optional[str] = None
    method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: Optional[int] = None  # milliseconds


class HTTPRequestNode(BaseNode):
    """
    Send an HTTP request and return the parsed response.

    For POST/PUT/PATCH the input is sent as the JSON body. The whole
    request is bounded by ``timeout`` milliseconds; on expiry the request
    is cancelled and RequestTimeoutError is raised. Other transport
    errors propagate unchanged.

    Returns:
        Dict with ``status``, ``statusText``, ``headers``, ``data`` (JSON
        or text depending on content type) and ``success``
    """

    node_type = NodeType.HTTP_REQUEST
    config_model = HTTPRequestConfig

    @property
    def method(self) -> str:
        return (self.config.method or "GET").upper()

    @property
    def timeout_ms(self) -> int:
        if self.config.timeout is None:
            return settings.HTTP_DEFAULT_TIMEOUT_MS
        return self.config.timeout

    async def execute(self, input: Any, context: ExecutionContext) -> Any:
        try:
            self.validate_input(input)

            url = self.process_template(self.config.url, input, context)
            headers = {"Content-Type": "application/json", **self.config.headers}
            body = None
            if self.method in BODY_METHODS and input:
                body = to_json(input)

            logger.debug(f"Node {self.id}: {self.method} {url}")

            client = context.services.http_client
            try:
                if client is not None:
                    response = await self._send(client, url, headers, body)
                else:
                    async with httpx.AsyncClient() as own_client:
                        response = await self._send(own_client, url, headers, body)
            except (asyncio.TimeoutError, httpx.TimeoutException):
                raise RequestTimeoutError(self.timeout_ms) from None

            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                data = response.json()
            else:
                data = response.text

            return {
                "status": response.status_code,
                "statusText": response.reason_phrase,
                "headers": dict(response.headers),
                "data": data,
                "success": response.is_success,
            }
        except Exception as e:
            self.handle_error(e)

    async def _send(
        self,
        client: httpx.AsyncClient,
        url: str,
        headers: Dict[str, str],
        body: Optional[str],
    ) -> httpx.Response:
        # Overrides the client's default timeout for this request
        timeout = self.timeout_ms / 1000
        return await asyncio.wait_for(
            client.request(
                self.method, url, headers=headers, content=body, timeout=httpx.Timeout(timeout)
            ),
            timeout=timeout,
        )

    @staticmethod
    def process_template(template: str, input: Any, context: ExecutionContext) -> str:
        """Substitute ``{{input.key}}`` and ``{{context.key}}`` placeholders."""
        result = template

        if isinstance(input, dict):
            for key, value in input.items():
                result = result.replace(f"{{{{input.{key}}}}}", to_text(value))

        for key, value in context.variables.items():
            result = result.replace(f"{{{{context.{key}}}}}", to_text(value))

        return result

    def validate_input(self, input: Any) -> None:
        if not self.config.url:
            raise NodeConfigurationError("URL is required in node configuration")
        if self.method not in HTTP_METHODS:
            raise NodeConfigurationError(f"Invalid HTTP method: {self.method}")

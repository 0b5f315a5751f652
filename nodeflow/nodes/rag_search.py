"""
RAG Search Node.

Searches a document collection through the injected document-search
service.
"""

from typing import Any, Optional
from pydantic import Field

from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.errors import (
    NodeConfigurationError,
    NodeInputError,
    ServiceUnavailableError,
)
from nodeflow.engine.types import NodeType
from nodeflow.nodes.base import BaseNode, NodeConfig, to_json
from nodeflow.services.base import SearchResult, coerce_model


class RAGSearchConfig(NodeConfig):
    collection_id: Optional[str] = Field(None, alias="collectionId")
    top_k: int = Field(5, alias="topK")
    similarity_threshold: float = Field(0.7, alias="similarityThreshold")


class RAGSearchNode(BaseNode):
    """Returns ``{query, results, count}`` for the input query."""

    node_type = NodeType.RAG_SEARCH
    config_model = RAGSearchConfig

    async def execute(self, input: Any, context: ExecutionContext) -> Any:
        try:
            self.validate_input(input)

            search = context.services.search_documents
            if search is None:
                raise ServiceUnavailableError("Document search service is not configured")

            query = self.extract_query(input)
            hits = await search(
                collection_id=self.config.collection_id,
                query=query,
                top_k=self.config.top_k,
                similarity_threshold=self.config.similarity_threshold,
            )

            results = []
            for hit in hits or []:
                result = coerce_model(SearchResult, hit)
                results.append({
                    "content": result.content,
                    "metadata": result.metadata,
                    "similarity": result.similarity,
                    "documentId": result.document_id,
                })

            return {
                "query": query,
                "results": results,
                "count": len(results),
            }
        except Exception as e:
            self.handle_error(e)

    @staticmethod
    def extract_query(input: Any) -> str:
        if isinstance(input, str):
            return input
        if isinstance(input, dict) and input.get("query"):
            return str(input["query"])
        return to_json(input)

    def validate_input(self, input: Any) -> None:
        if input is None or input == "":
            raise NodeInputError("Input is required for RAG Search node")
        if not self.config.collection_id:
            raise NodeConfigurationError("Collection ID is required in node configuration")

"""
Node Catalogue API Routes.
"""

from fastapi import APIRouter, Depends

from nodeflow.api.dependencies import get_node_factory
from nodeflow.api.schemas import NodeTypeInfo, NodeTypeListResponse
from nodeflow.engine.types import NodeType
from nodeflow.nodes.factory import NodeFactory


router = APIRouter(prefix="/nodes", tags=["Nodes"])


@router.get(
    "",
    response_model=NodeTypeListResponse,
)
async def list_node_types(
    factory: NodeFactory = Depends(get_node_factory),
) -> NodeTypeListResponse:
    """
    List the node types this server can execute.

    Types that appear in the editor palette but have no handler are listed
    under ``unsupported``; a workflow using one fails when that node runs.
    """
    nodes = []
    for node_type in factory.available_types():
        node_class = factory.get_node_class(node_type)
        doc = (node_class.__doc__ or "").strip()
        nodes.append(NodeTypeInfo(
            type=node_type.value,
            handler=node_class.__name__,
            builtin=factory.is_builtin(node_type) and factory.registry.get(node_type) is None,
            description=doc.splitlines()[0] if doc else "",
        ))

    supported = {info.type for info in nodes}
    unsupported = [t.value for t in NodeType if t.value not in supported]

    return NodeTypeListResponse(nodes=nodes, total=len(nodes), unsupported=unsupported)

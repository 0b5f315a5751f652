"""
FastAPI dependency accessors for the application's shared components.
"""

from fastapi import Request

from nodeflow.engine.manager import ExecutionManager
from nodeflow.nodes.factory import NodeFactory
from nodeflow.storage.memory import ExecutionStorage, WorkflowStorage


def get_workflow_storage(request: Request) -> WorkflowStorage:
    return request.app.state.workflow_storage


def get_execution_storage(request: Request) -> ExecutionStorage:
    return request.app.state.execution_storage


def get_execution_manager(request: Request) -> ExecutionManager:
    return request.app.state.execution_manager


def get_node_factory(request: Request) -> NodeFactory:
    return request.app.state.node_factory

"""
nodeflow - FastAPI Application Entry Point.

An async node-graph workflow engine: workflows are directed graphs of
typed nodes (user input, LLM agents, RAG search, templates, conditionals,
HTTP requests, responses) with data flowing along edges.
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

import httpx

from nodeflow.config import settings
from nodeflow.api.routes import executions, nodes, workflows
from nodeflow.engine.manager import ExecutionManager
from nodeflow.nodes.base import NodeRegistry
from nodeflow.nodes.factory import NodeFactory
from nodeflow.services.agents import InMemoryAgentStore
from nodeflow.services.base import Services
from nodeflow.storage.memory import ExecutionStorage, WorkflowStorage
from nodeflow.workflows.samples import DEMO_WORKFLOW_ID, register_demo_workflow


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    http_client = httpx.AsyncClient()
    app.state.services.http_client = http_client

    if settings.REGISTER_DEMO_WORKFLOW:
        await register_demo_workflow(app.state.workflow_storage)

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.execution_manager.shutdown()
    app.state.services.http_client = None
    await http_client.aclose()


def create_app(
    services: Optional[Services] = None,
    registry: Optional[NodeRegistry] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Capability handles for node handlers (an agent store
            with no LLM or search providers if not provided)
        registry: Additional node handler classes

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="""
## Workflow Execution API

Runs node-graph workflows: typed nodes connected by edges, with each
node's output flowing to the nodes downstream of it.

### Features
- **Nodes**: user input, LLM agent, RAG search, prompt template,
  conditional, HTTP request and response nodes
- **Edges**: data flows from source to target; conditional branches
  follow the `true` / `false` handles
- **Fan-in**: a node with several inputs runs once, after all of them
- **Executions**: synchronous or background runs, with per-node logs
  and cancellation

### Quick Start
1. List node types: `GET /nodes`
2. Create a workflow: `POST /workflows`
3. Run it: `POST /executions`
4. Check execution state: `GET /executions/{execution_id}`

### Demo Workflow
A pre-registered Q&A workflow is available with ID: `qa-demo`
        """,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    if services is None:
        agent_store = InMemoryAgentStore()
        services = Services(get_agent=agent_store.get)

    factory = NodeFactory(registry)
    execution_storage = ExecutionStorage()

    app.state.services = services
    app.state.node_factory = factory
    app.state.workflow_storage = WorkflowStorage()
    app.state.execution_storage = execution_storage
    app.state.execution_manager = ExecutionManager(
        services=services,
        factory=factory,
        storage=execution_storage,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(workflows.router)
    app.include_router(executions.router)
    app.include_router(nodes.router)

    # ============================================================
    # Root Endpoints
    # ============================================================

    @app.get("/", tags=["Root"])
    async def root():
        """API root - returns basic info and links."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": "An async node-graph workflow execution engine",
            "docs": "/docs",
            "redoc": "/redoc",
            "endpoints": {
                "workflows": "/workflows",
                "executions": "/executions",
                "nodes": "/nodes",
            },
            "demo_workflow": DEMO_WORKFLOW_ID if settings.REGISTER_DEMO_WORKFLOW else None,
        }

    @app.get("/health", tags=["Root"])
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "workflows_count": len(app.state.workflow_storage),
            "executions_count": len(app.state.execution_storage),
            "active_executions": sum(
                1 for engine in app.state.execution_manager.list_executions()
                if not engine.is_finished
            ),
        }

    # ============================================================
    # Error Handlers
    # ============================================================

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Global exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc) if settings.DEBUG else "An unexpected error occurred",
                "status_code": 500,
            },
        )

    return app


# Create FastAPI application
app = create_app()

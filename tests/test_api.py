"""
Tests for the FastAPI endpoints.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from nodeflow.main import create_app


QA_WORKFLOW = {
    "id": "qa",
    "name": "Question answering",
    "nodes": [
        {"id": "1", "type": "user_input", "data": {"label": "Question"}},
        {
            "id": "2",
            "type": "prompt_template",
            "data": {"label": "Prompt", "config": {"template": "Q: {{q}}", "variables": ["q"]}},
        },
        {"id": "3", "type": "response", "data": {"label": "Answer", "config": {"format": "text"}}},
    ],
    "edges": [
        {"id": "e1", "source": "1", "target": "2"},
        {"id": "e2", "source": "2", "target": "3"},
    ],
}


@pytest.fixture
def client():
    return TestClient(create_app())


def create(client, payload=QA_WORKFLOW):
    response = client.post("/workflows", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================
# Root Endpoints
# ============================================================

class TestRootEndpoints:
    """Tests for root endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["name"]
        assert "version" in data
        assert data["endpoints"]["executions"] == "/executions"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["workflows_count"] == 0
        assert data["active_executions"] == 0

    def test_node_catalogue(self, client):
        """Built-in handlers are listed; declared-only types are flagged."""
        response = client.get("/nodes")
        assert response.status_code == 200

        data = response.json()
        types = {n["type"]: n for n in data["nodes"]}
        assert data["total"] == 7
        assert types["response"]["builtin"] is True
        assert types["response"]["handler"] == "ResponseNode"
        assert "loop" in data["unsupported"]
        assert "response" not in data["unsupported"]

    def test_node_catalogue_includes_registered(self, registry):
        client = TestClient(create_app(registry=registry))
        data = client.get("/nodes").json()

        types = {n["type"]: n for n in data["nodes"]}
        assert types["text_processor"]["builtin"] is False
        assert "text_processor" not in data["unsupported"]


# ============================================================
# Workflow Endpoints
# ============================================================

class TestWorkflowEndpoints:
    """Tests for workflow CRUD."""

    def test_create_and_get(self, client):
        data = create(client)
        assert data["workflowId"] == "qa"
        assert data["nodeCount"] == 3

        response = client.get("/workflows/qa")
        assert response.status_code == 200

        info = response.json()
        assert info["name"] == "Question answering"
        assert info["startNodes"] == ["1"]
        assert info["version"] == 1
        assert info["mermaidDiagram"].startswith("graph TD")
        assert info["definition"]["edges"][0]["source"] == "1"

    def test_generated_id(self, client):
        payload = {k: v for k, v in QA_WORKFLOW.items() if k != "id"}
        data = create(client, payload)
        assert data["workflowId"]
        assert client.get(f"/workflows/{data['workflowId']}").status_code == 200

    def test_list(self, client):
        create(client)
        data = client.get("/workflows").json()

        assert data["total"] == 1
        assert data["workflows"][0]["workflowId"] == "qa"
        assert data["workflows"][0]["mermaidDiagram"] is None

    def test_update(self, client):
        create(client)
        payload = dict(QA_WORKFLOW, name="Renamed")

        response = client.put("/workflows/qa", json=payload)
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert response.json()["version"] == 2

        assert client.put("/workflows/missing", json=payload).status_code == 404

    def test_delete(self, client):
        create(client)
        assert client.delete("/workflows/qa").status_code == 204
        assert client.get("/workflows/qa").status_code == 404
        assert client.delete("/workflows/qa").status_code == 404

    def test_invalid_graph(self, client):
        """Dangling edges and cycles are rejected with 400."""
        payload = dict(QA_WORKFLOW, edges=[{"id": "e1", "source": "1", "target": "ghost"}])
        response = client.post("/workflows", json=payload)

        assert response.status_code == 400
        assert "target 'ghost' is not a valid node" in response.json()["detail"]

        payload = dict(QA_WORKFLOW, edges=QA_WORKFLOW["edges"] + [{"id": "e3", "source": "3", "target": "2"}])
        response = client.post("/workflows", json=payload)
        assert response.status_code == 400
        assert "cycle" in response.json()["detail"]

    def test_unknown_node_type_is_rejected_by_model(self, client):
        payload = dict(QA_WORKFLOW, nodes=[{"id": "x", "type": "teleport"}], edges=[])
        assert client.post("/workflows", json=payload).status_code == 422

    def test_duplicate_id(self, client):
        create(client)
        assert client.post("/workflows", json=QA_WORKFLOW).status_code == 409


# ============================================================
# Execution Endpoints
# ============================================================

class TestExecutionEndpoints:
    """Tests for synchronous executions."""

    def test_execute(self, client):
        create(client)
        response = client.post("/executions", json={
            "workflowId": "qa",
            "input": "capital of France",
            "userId": "u1",
        })
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "completed"
        assert data["result"]["content"] == "Q: capital of France"
        assert data["result"]["metadata"]["userId"] == "u1"
        assert data["nodeResults"]["2"] == "Q: capital of France"
        assert [s["nodeId"] for s in data["executionLog"]] == ["1", "2", "3"]

        response = client.get(f"/executions/{data['executionId']}")
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_failed_run_is_reported(self, client):
        """A handler error comes back as a failed execution."""
        create(client, {
            "id": "llm",
            "name": "LLM",
            "nodes": [{"id": "a", "type": "llm_agent", "data": {"config": {"agentId": "helper"}}}],
            "edges": [],
        })
        response = client.post("/executions", json={"workflowId": "llm", "input": "hi"})
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "failed"
        assert data["error"] == "LLM completion service is not configured"
        assert data["executionLog"][0]["status"] == "error"

    def test_unknown_workflow(self, client):
        response = client.post("/executions", json={"workflowId": "nope", "input": "x"})
        assert response.status_code == 404

    def test_list_and_filter(self, client):
        create(client)
        create(client, dict(QA_WORKFLOW, id="other"))
        client.post("/executions", json={"workflowId": "qa", "input": "a"})
        client.post("/executions", json={"workflowId": "other", "input": "b"})

        assert client.get("/executions").json()["total"] == 2
        data = client.get("/executions", params={"workflow_id": "other"}).json()
        assert data["total"] == 1
        assert data["executions"][0]["workflowId"] == "other"

    def test_get_missing(self, client):
        assert client.get("/executions/missing").status_code == 404
        assert client.post("/executions/missing/cancel").status_code == 404

    def test_cancel_finished(self, client):
        create(client)
        execution_id = client.post("/executions", json={"workflowId": "qa", "input": "x"}).json()["executionId"]

        response = client.post(f"/executions/{execution_id}/cancel")
        assert response.status_code == 200
        assert response.json() == {"executionId": execution_id, "cancelled": False, "status": "completed"}

    def test_demo_workflow(self):
        """The demo workflow is registered at start-up."""
        with TestClient(create_app()) as client:
            response = client.post("/executions", json={
                "workflowId": "qa-demo",
                "input": "What is the capital of France?",
            })

        data = response.json()
        assert data["status"] == "completed"
        assert data["result"]["content"].startswith("You asked: What is the capital of France?")
        statuses = {s["nodeId"]: s["status"] for s in data["executionLog"]}
        assert statuses["statement_prompt"] == "skipped"


# ============================================================
# Async Tests
# ============================================================

SLOW_WORKFLOW = {
    "id": "slow",
    "name": "Slow",
    "nodes": [{"id": "wait", "type": "text_processor", "data": {"config": {"delay": 0.1}}}],
    "edges": [],
}


async def poll(ac, execution_id, done=("completed", "failed", "cancelled")):
    for _ in range(100):
        data = (await ac.get(f"/executions/{execution_id}")).json()
        if data["status"] in done:
            return data
        await asyncio.sleep(0.02)
    raise AssertionError(f"Execution {execution_id} did not finish")


@pytest.mark.asyncio
async def test_async_execution(registry):
    """Background runs are polled to completion."""
    app = create_app(registry=registry)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        assert (await ac.post("/workflows", json=SLOW_WORKFLOW)).status_code == 201

        response = await ac.post("/executions", json={
            "workflowId": "slow",
            "input": "x",
            "asyncExecution": True,
        })
        assert response.status_code == 200
        assert response.json()["status"] in ("pending", "running")

        data = await poll(ac, response.json()["executionId"])
        assert data["status"] == "completed"
        assert data["result"] == "wait(x)"


@pytest.mark.asyncio
async def test_cancel_async_execution(registry):
    """A background run can be cancelled through the API."""
    app = create_app(registry=registry)
    slow = dict(SLOW_WORKFLOW, nodes=[{"id": "wait", "type": "text_processor", "data": {"config": {"delay": 5}}}])
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        await ac.post("/workflows", json=slow)
        execution_id = (await ac.post("/executions", json={
            "workflowId": "slow",
            "input": "x",
            "asyncExecution": True,
        })).json()["executionId"]
        await asyncio.sleep(0.05)

        response = await ac.post(f"/executions/{execution_id}/cancel")
        assert response.json()["cancelled"] is True

        data = await poll(ac, execution_id)
        assert data["status"] == "cancelled"

    await app.state.execution_manager.shutdown()


@pytest.mark.asyncio
async def test_concurrent_requests(registry):
    """Concurrent executions are tracked independently."""
    app = create_app(registry=registry)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        await ac.post("/workflows", json=SLOW_WORKFLOW)

        responses = await asyncio.gather(*[
            ac.post("/executions", json={"workflowId": "slow", "input": str(i)})
            for i in range(5)
        ])

        results = sorted(r.json()["result"] for r in responses)
        assert results == [f"wait({i})" for i in range(5)]
        assert len({r.json()["executionId"] for r in responses}) == 5

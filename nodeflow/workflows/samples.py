"""
Sample Workflow Definitions.

A small question-answering workflow demonstrating the engine:
1. Take the user's text
2. Branch on whether it is a question
3. Render a prompt for the branch taken
4. Format the response
"""

from typing import Any, List, Optional
import logging

from nodeflow.engine.types import (
    ConditionOperator,
    NodeType,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
    WorkflowVariable,
)
from nodeflow.storage.memory import WorkflowStorage


logger = logging.getLogger(__name__)

DEMO_WORKFLOW_ID = "qa-demo"


def _node(node_id: str, node_type: NodeType, label: str, x: float, y: float, **config: Any) -> WorkflowNode:
    return WorkflowNode.model_validate({
        "id": node_id,
        "type": node_type,
        "position": {"x": x, "y": y},
        "data": {"label": label, "config": config},
    })


def _edge(edge_id: str, source: str, target: str, source_handle: Optional[str] = None) -> WorkflowEdge:
    return WorkflowEdge(id=edge_id, source=source, target=target, source_handle=source_handle)


# ============================================================
# Workflow Factory
# ============================================================

def create_qa_workflow(max_length: int = 500) -> WorkflowDefinition:
    """
    Create the question-answering demo workflow.

    Workflow flow:
    ```
    input → is_question ─┬─(true)──→ question_prompt ──┬─→ response
                         └─(false)─→ statement_prompt ─┘
    ```

    Args:
        max_length: Maximum accepted input length

    Returns:
        The workflow definition
    """
    nodes: List[WorkflowNode] = [
        _node(
            "input", NodeType.USER_INPUT, "Question", 0, 0,
            inputType="text",
            validation={"required": True, "maxLength": max_length},
        ),
        _node(
            "is_question", NodeType.CONDITIONAL, "Is it a question?", 0, 120,
            operator=ConditionOperator.CONTAINS.value,
            value="?",
        ),
        _node(
            "question_prompt", NodeType.PROMPT_TEMPLATE, "Question prompt", -160, 240,
            template="You asked: {{input}}\nTone: {{tone}}",
            variables=["input", "tone"],
        ),
        _node(
            "statement_prompt", NodeType.PROMPT_TEMPLATE, "Statement prompt", 160, 240,
            template="You said: {{input}}\nAsk me a question to get an answer.",
            variables=["input"],
        ),
        _node("response", NodeType.RESPONSE, "Answer", 0, 360, format="text"),
    ]

    edges: List[WorkflowEdge] = [
        _edge("e-input", "input", "is_question"),
        _edge("e-true", "is_question", "question_prompt", "true"),
        _edge("e-false", "is_question", "statement_prompt", "false"),
        _edge("e-question", "question_prompt", "response"),
        _edge("e-statement", "statement_prompt", "response"),
    ]

    return WorkflowDefinition(
        id=DEMO_WORKFLOW_ID,
        workflow_id=DEMO_WORKFLOW_ID,
        name="Q&A Demo",
        description="Routes questions and statements to different prompts.",
        is_published=True,
        nodes=nodes,
        edges=edges,
        variables=[WorkflowVariable(name="tone", default_value="friendly")],
    )


async def register_demo_workflow(storage: WorkflowStorage) -> WorkflowDefinition:
    """
    Register the demo workflow in storage.

    This makes the workflow available immediately via the API
    without needing to create it first.
    """
    workflow = create_qa_workflow()
    await storage.save(workflow)

    logger.info(f"Registered demo workflow with ID: {DEMO_WORKFLOW_ID}")
    return workflow


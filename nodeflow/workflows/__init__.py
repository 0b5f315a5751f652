"""
Workflows package - Sample workflow definitions.
"""

from nodeflow.workflows.samples import DEMO_WORKFLOW_ID, create_qa_workflow, register_demo_workflow

__all__ = [
    "DEMO_WORKFLOW_ID",
    "create_qa_workflow",
    "register_demo_workflow",
]

"""
API Routes package.
"""

from nodeflow.api.routes import executions, nodes, workflows

__all__ = ["executions", "nodes", "workflows"]

"""
nodeflow - An async node-graph workflow execution engine.

Runs directed graphs of typed nodes (LLM calls, RAG search, HTTP requests,
conditionals, templating) with data flowing along edges.
"""

__version__ = "1.0.0"

"""
Multi-provider text generation with task-aware routing.

See multimodel.llm for the orchestrator API.
"""

__version__ = "0.1.0"

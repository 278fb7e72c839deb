"""
API Routes Package - Flask Blueprints for the trace inspector API.

Each module contains a Flask Blueprint for a specific domain:
- health: Health check endpoint
- tracing: Tree, graph and I/O source builders
"""

from .health import health_bp
from .tracing import PayloadError, tracing_bp

__all__ = [
    "health_bp",
    "tracing_bp",
    "PayloadError",
]

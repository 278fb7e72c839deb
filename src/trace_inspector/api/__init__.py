"""
Trace Inspector API - HTTP interface to the trace view builders.

Architecture:
- The server wraps the pure builders behind Flask blueprints
- The client posts already-fetched traces and returns the decoded data
"""

from .client import TraceInspectorAPIClient, get_api_client
from .server import (
    TraceInspectorAPIServer,
    create_app,
    start_api_server,
    stop_api_server,
)

__all__ = [
    "TraceInspectorAPIServer",
    "create_app",
    "start_api_server",
    "stop_api_server",
    "TraceInspectorAPIClient",
    "get_api_client",
]

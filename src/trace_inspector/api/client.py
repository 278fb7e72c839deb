"""
Trace Inspector API Client - HTTP client for the trace view endpoints.

Callers that hold fetched traces (viewers, scripts) post them here instead of
importing the builders. Failures are logged and reported as None.
"""

import json
import urllib.error
import urllib.request
from typing import Any, Optional

from ..utils.logger import debug, error
from .config import API_HOST, API_PORT, API_TIMEOUT, get_base_url


class TraceInspectorAPIClient:
    """HTTP client for the Trace Inspector API."""

    def __init__(
        self, host: str = API_HOST, port: int = API_PORT, timeout: int = API_TIMEOUT
    ):
        """Initialize the API client.

        Args:
            host: API server host
            port: API server port
            timeout: Request timeout in seconds
        """
        self._base_url = get_base_url(host, port)
        self._timeout = timeout
        self._available: Optional[bool] = None

    def _request(
        self, endpoint: str, payload: Optional[dict] = None
    ) -> Optional[Any]:
        """Make an HTTP request to the API.

        Args:
            endpoint: API endpoint (e.g., "/api/tracing/tree")
            payload: JSON body; sends a POST when given, else a GET

        Returns:
            Response data, or None if the request failed
        """
        url = f"{self._base_url}{endpoint}"
        body = json.dumps(payload).encode("utf-8") if payload is not None else None

        try:
            req = urllib.request.Request(
                url, data=body, method="POST" if body is not None else "GET"
            )
            req.add_header("Accept", "application/json")
            if body is not None:
                req.add_header("Content-Type", "application/json")

            with urllib.request.urlopen(req, timeout=self._timeout) as response:  # nosec B310
                data = json.loads(response.read().decode("utf-8"))

            self._available = True
            return data.get("data")

        except urllib.error.HTTPError as e:
            # 4xx/5xx still carry the error envelope
            self._available = True
            try:
                message = json.loads(e.read().decode("utf-8")).get("error")
            except ValueError:
                message = e.reason
            error(f"[API Client] {endpoint} failed ({e.code}): {message}")
            return None
        except urllib.error.URLError as e:
            if self._available is not False:
                debug(f"[API Client] API not available: {e}")
            self._available = False
            return None

    @property
    def is_available(self) -> bool:
        """Whether the last request reached the server."""
        if self._available is None:
            return self.health_check()
        return self._available

    def health_check(self) -> bool:
        """Check if the API server is responding."""
        return self._request("/api/health") is not None

    def get_trace_tree(
        self, trace: dict, observations: list[dict], min_level: Optional[str] = None
    ) -> Optional[dict]:
        """Build the aggregated tree for a trace.

        Args:
            trace: Trace record (camelCase JSON)
            observations: Observation records (camelCase JSON)
            min_level: Optional severity threshold

        Returns:
            Flat tree dict or None
        """
        payload: dict = {"trace": trace, "observations": observations}
        if min_level:
            payload["minLevel"] = min_level
        return self._request("/api/tracing/tree", payload)

    def get_trace_graph(
        self, observations: list[dict], graph_format: str = "langgraph"
    ) -> Optional[dict]:
        """Build the execution graph for a trace."""
        return self._request(
            "/api/tracing/graph",
            {"observations": observations, "format": graph_format},
        )

    def get_io_sources(self, observations: list[dict]) -> Optional[dict]:
        """Get the kernel -> I/O source pairing for a trace."""
        return self._request("/api/tracing/io-sources", {"observations": observations})


# Global client instance
_api_client: Optional[TraceInspectorAPIClient] = None


def get_api_client() -> TraceInspectorAPIClient:
    """Get or create the global API client instance."""
    global _api_client
    if _api_client is None:
        _api_client = TraceInspectorAPIClient()
    return _api_client

"""
Trace Inspector API Server - Flask server exposing the trace view builders.

The builders are pure functions, so the server keeps no state between
requests; it only parses bodies and serializes results.
"""

import argparse
import logging
import threading
from typing import Any, Optional

from flask import Flask
from werkzeug.serving import make_server

from ..utils.logger import info
from .config import API_HOST, API_PORT, SERVER_SHUTDOWN_TIMEOUT, get_base_url
from .routes import health_bp, tracing_bp


def create_app() -> Flask:
    """Create the Flask app with all blueprints registered."""
    app = Flask(__name__)
    app.register_blueprint(health_bp)
    app.register_blueprint(tracing_bp)
    return app


class TraceInspectorAPIServer:
    """Flask server for the trace inspector API.

    Runs in a background thread so it can be embedded in other processes.
    """

    def __init__(self, host: str = API_HOST, port: int = API_PORT):
        """Initialize the API server.

        Args:
            host: Host to bind to (default: localhost only)
            port: Port to listen on
        """
        self._host = host
        self._port = port
        self._app = create_app()
        self._server: Any = None  # werkzeug BaseWSGIServer
        self._thread: Optional[threading.Thread] = None

    @property
    def app(self) -> Flask:
        return self._app

    def start(self) -> None:
        """Start the API server in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        # Disable werkzeug request logging (too verbose)
        logging.getLogger("werkzeug").setLevel(logging.ERROR)

        # Bind before starting the thread so the port is ready on return
        self._server = make_server(self._host, self._port, self._app, threaded=True)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        info(f"[API] Server started on {self.url}")

    def stop(self) -> None:
        """Stop the API server."""
        if self._server:
            self._server.shutdown()
            info("[API] Server stopped")
        if self._thread is not None:
            self._thread.join(timeout=SERVER_SHUTDOWN_TIMEOUT)
        self._server = None
        self._thread = None

    def serve_forever(self) -> None:
        """Start the server and block until interrupted."""
        self.start()
        try:
            while self.is_running:
                self._thread.join(timeout=1)
        except KeyboardInterrupt:
            info("[API] Interrupted")
        finally:
            self.stop()

    @property
    def url(self) -> str:
        """Get the base URL of the API server."""
        return get_base_url(self._host, self._port)

    @property
    def is_running(self) -> bool:
        """Check if the server is running."""
        return self._thread is not None and self._thread.is_alive()


# Global server instance
_api_server: Optional[TraceInspectorAPIServer] = None


def get_api_server() -> TraceInspectorAPIServer:
    """Get or create the global API server instance."""
    global _api_server
    if _api_server is None:
        _api_server = TraceInspectorAPIServer()
    return _api_server


def start_api_server() -> None:
    """Start the global API server."""
    server = get_api_server()
    server.start()


def stop_api_server() -> None:
    """Stop the global API server."""
    global _api_server
    if _api_server:
        _api_server.stop()
        _api_server = None


def main():
    parser = argparse.ArgumentParser(description="Run the trace inspector API server")
    parser.add_argument("--host", default=API_HOST, help="Host to bind to")
    parser.add_argument("--port", type=int, default=API_PORT, help="Port to listen on")
    args = parser.parse_args()

    TraceInspectorAPIServer(host=args.host, port=args.port).serve_forever()


if __name__ == "__main__":
    main()

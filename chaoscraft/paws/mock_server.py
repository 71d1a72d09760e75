"""Mock Server - a Flask app served by Werkzeug on a background thread.

This is the only module that knows how HTTP is actually served. The rest of
ChaosCraft talks to it through the ``MockServer`` primitives ``start``,
``configure`` and ``stop``, plus the ``is_running`` query.
"""

import logging
import random
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

from flask import Flask, Response
from werkzeug.serving import BaseWSGIServer, make_server

from chaoscraft.brain.errors import MockServerStartError
from chaoscraft.brain.planner import Recipe

logger = logging.getLogger(__name__)

MOCK_SERVER_HOST = "localhost"
MOCK_SERVER_PORT = 8080

ANY_METHOD = "ANY"
HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]


@dataclass(frozen=True)
class Route:
    path: str
    method: str = ANY_METHOD

    @property
    def methods(self) -> List[str]:
        if self.method == ANY_METHOD:
            return list(HTTP_METHODS)
        return [self.method.upper()]


@dataclass
class MockServerHandle:
    """Opaque reference to one running server instance."""

    app: Flask
    server: BaseWSGIServer
    thread: threading.Thread
    port: int
    routes: List[Route] = field(default_factory=list)

    @property
    def is_alive(self) -> bool:
        return self.thread.is_alive()


class MockServer(Protocol):
    """Contract the controller needs from an HTTP mock engine."""

    def start(self, port: int) -> Any:
        ...

    def stop(self, handle: Any) -> None:
        ...

    def configure(self, handle: Any, route: Route, recipe: Recipe) -> None:
        ...

    def is_running(self, handle: Any) -> bool:
        ...


def _bind_socket(host: str, port: int) -> socket.socket:
    """Bind and listen on ``host:port``, raising ``MockServerStartError`` on failure."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(128)
    except OSError as e:
        sock.close()
        raise MockServerStartError(f"Could not bind mock server to {host}:{port}: {e}") from e
    return sock


class FlaskMockServer:
    """Serve recipes from a Flask app on a Werkzeug threaded server.

    The listening socket is bound before Werkzeug sees it, so a port already
    in use raises ``MockServerStartError``.
    """

    def __init__(self, host: str = MOCK_SERVER_HOST, rng: Optional[random.Random] = None) -> None:
        self.host = host
        self.rng = rng or random.Random()

        # Keep per-request access logs out of the operator console
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    def start(self, port: int) -> MockServerHandle:
        sock = _bind_socket(self.host, port)
        app = Flask(__name__)
        try:
            server = make_server(self.host, port, app, threaded=True, fd=sock.fileno())
        except Exception as e:
            raise MockServerStartError(f"Could not start mock server: {e}") from e
        finally:
            # Werkzeug duplicates the descriptor
            sock.close()

        thread = threading.Thread(
            target=server.serve_forever,
            name=f"chaoscraft-mock-{server.port}",
            daemon=True,
        )
        thread.start()
        logger.info("Mock server listening on %s:%d", self.host, server.port)
        return MockServerHandle(app=app, server=server, thread=thread, port=server.port)

    def configure(self, handle: MockServerHandle, route: Route, recipe: Recipe) -> None:
        view_name = f"mock_route_{len(handle.routes)}"

        def respond(**_: Any) -> Response:
            if recipe.delay_ms:
                time.sleep(recipe.delay_ms / 1000)
            status_code, body = recipe.respond(self.rng)
            return Response(body or "", status=status_code, headers=dict(recipe.headers))

        try:
            handle.app.add_url_rule(
                route.path,
                endpoint=view_name,
                view_func=respond,
                methods=route.methods,
            )
        except (AssertionError, ValueError) as e:
            raise MockServerStartError(f"Could not register route {route.path}: {e}") from e
        handle.routes.append(route)
        logger.debug("Mapped %s %s -> %d", route.method, route.path, recipe.status_code)

    def stop(self, handle: MockServerHandle) -> None:
        handle.server.shutdown()
        handle.server.server_close()
        handle.thread.join(timeout=5)
        logger.info("Mock server on port %d stopped", handle.port)

    def is_running(self, handle: MockServerHandle) -> bool:
        return handle.is_alive

"""Mock identity service serving canned responses on a local port."""

from __future__ import annotations

import threading

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .constants import LOCALHOST_PATTERN
from .logging_config import get_logger
from .models import StubDefinition
from .server_thread import BackgroundServer

logger = get_logger(__name__)

STUB_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class MockIdentityServer:
    """Local stand-in for an identity service.

    Stubs can be registered at any time, including while requests are being
    served; the stub table is guarded by a lock shared with the request
    handler.

    Usage:
        server = MockIdentityServer()
        server.start()
        server.stub_for("GET", "/token_keys", body='{"keys": []}')
        ...
        server.stop()
    """

    def __init__(self, port: int = 0, host: str | None = None):
        self._lock = threading.Lock()
        self._stubs: dict[tuple[str, str], StubDefinition] = {}
        self._requests: list[tuple[str, str]] = []
        self.app = self._create_app()
        self._server = BackgroundServer(self.app, name="mock-identity-server", port=port, host=host)

    def _create_app(self) -> FastAPI:
        app = FastAPI(
            title="Mock identity service",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

        @app.api_route("/{path:path}", methods=STUB_METHODS)
        async def serve_stub(request: Request) -> Response:
            return self._respond(request.method, request.url.path, request.url.query)

        return app

    def _respond(self, method: str, path: str, query: str = "") -> Response:
        target = f"{path}?{query}" if query else path
        with self._lock:
            self._requests.append((method, target))
            stub = self._stubs.get((method, target))
            if stub is None and query:
                stub = self._stubs.get((method, path))
        if stub is None:
            logger.debug("mock_server_unmatched_request", method=method, path=path)
            return JSONResponse(
                status_code=404,
                content={"error": "no stub registered", "method": method, "path": target},
            )
        return Response(content=stub.body, status_code=stub.status_code, media_type=stub.content_type)

    def start(self) -> int:
        """Bind the configured port (or a free one) and start serving.

        Returns:
            The bound port

        Raises:
            HarnessStateError: If the server was already started
            ResourceStartupError: If the port cannot be bound
        """
        port = self._server.start()
        logger.info("mock_server_started", port=port)
        return port

    def stop(self) -> None:
        self._server.stop()
        logger.info("mock_server_stopped")

    @property
    def port(self) -> int:
        return self._server.port

    @property
    def base_url(self) -> str:
        return LOCALHOST_PATTERN.format(port=self.port)

    @property
    def is_running(self) -> bool:
        return self._server.is_running

    def stub(self, definition: StubDefinition) -> StubDefinition:
        """Register a stub, replacing any stub for the same method and path.

        A path carrying a query string (``/token_keys?zid=abc``) only matches
        requests with exactly that query. A path without one matches the
        path with any query.
        """
        with self._lock:
            self._stubs[(definition.method, definition.path)] = definition
        logger.debug("mock_server_stub_registered", method=definition.method, path=definition.path)
        return definition

    def stub_for(
        self,
        method: str,
        path: str,
        body: str = "",
        *,
        status_code: int = 200,
        content_type: str = "application/json",
    ) -> StubDefinition:
        return self.stub(
            StubDefinition(
                method=method,
                path=path,
                body=body,
                status_code=status_code,
                content_type=content_type,
            )
        )

    @property
    def stubs(self) -> list[StubDefinition]:
        with self._lock:
            return list(self._stubs.values())

    @property
    def requests(self) -> list[tuple[str, str]]:
        """Method and path (with its query string, if any) of every request served.

        The journal grows until ``reset_requests()`` is called.
        """
        with self._lock:
            return list(self._requests)

    def reset_requests(self) -> None:
        with self._lock:
            self._requests.clear()

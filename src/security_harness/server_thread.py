"""Run an ASGI application with uvicorn on a background thread.

The listening socket is bound on the calling thread before the server
thread starts. A port conflict therefore surfaces from ``start()`` itself,
and the port accepts connections (queued in the backlog) as soon as
``start()`` returns, without waiting for the event loop to come up.
"""

from __future__ import annotations

import os
import socket
import threading
from typing import Any

import uvicorn

from .exceptions import HarnessStateError, ResourceStartupError, ResourceTeardownError
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_HOST = "localhost"
SHUTDOWN_TIMEOUT_DEFAULT = 5.0
LISTEN_BACKLOG = 128


def bind_host() -> str:
    return os.environ.get("SECURITY_HARNESS_HOST", DEFAULT_HOST)


def shutdown_timeout() -> float:
    return float(os.environ.get("SECURITY_HARNESS_SHUTDOWN_TIMEOUT", str(SHUTDOWN_TIMEOUT_DEFAULT)))


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind and listen on ``host:port``; port 0 lets the OS pick a free port.

    Raises:
        ResourceStartupError: If the address cannot be bound
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(LISTEN_BACKLOG)
    except OSError as exc:
        sock.close()
        raise ResourceStartupError(f"failed to bind {host}:{port}: {exc}") from exc
    sock.set_inheritable(True)
    return sock


class BackgroundServer:
    """A uvicorn server started and stopped exactly once."""

    def __init__(self, app: Any, *, name: str, port: int = 0, host: str | None = None):
        self._app = app
        self._name = name
        self._requested_port = port
        self._host = host or bind_host()
        self._socket: socket.socket | None = None
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._port: int | None = None
        self._error: BaseException | None = None

    @property
    def port(self) -> int:
        if self._port is None:
            raise HarnessStateError(f"{self._name} has not been started")
        return self._port

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> int:
        """Bind the socket and start serving.

        Returns:
            The bound port

        Raises:
            HarnessStateError: If the server was already started
            ResourceStartupError: If the port cannot be bound
        """
        if self._socket is not None:
            raise HarnessStateError(f"{self._name} can only be started once")

        sock = bind_socket(self._host, self._requested_port)
        self._socket = sock
        self._port = sock.getsockname()[1]

        config = uvicorn.Config(
            self._app,
            log_config=None,
            log_level="warning",
            access_log=False,
            timeout_graceful_shutdown=1,
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._serve,
            args=(self._server, sock),
            name=f"{self._name}-{self._port}",
            daemon=True,
        )
        self._thread.start()
        logger.debug("background_server_started", server=self._name, host=self._host, port=self._port)
        return self._port

    def _serve(self, server: uvicorn.Server, sock: socket.socket) -> None:
        try:
            server.run(sockets=[sock])
        except BaseException as exc:
            self._error = exc
            logger.error("background_server_crashed", server=self._name, port=self._port, exc_info=True)

    def stop(self) -> None:
        """Stop serving and release the port.

        A server that was never started is left alone.

        Raises:
            ResourceTeardownError: If the server thread does not finish in time or
                crashed while serving
        """
        if self._thread is None or self._server is None:
            return

        self._server.should_exit = True
        timeout = shutdown_timeout()
        self._thread.join(timeout)
        alive = self._thread.is_alive()
        if self._socket is not None:
            self._socket.close()

        if alive:
            self._server.force_exit = True
            raise ResourceTeardownError(
                f"{self._name} on port {self._port} did not stop within {timeout}s"
            )
        if self._error is not None:
            raise ResourceTeardownError(
                f"{self._name} on port {self._port} crashed while serving", [self._error]
            )
        logger.debug("background_server_stopped", server=self._name, port=self._port)

"""Embedded application server booting the system under test from a directory.

The web application directory is copied into a private working area before
it is loaded, so files the application writes never end up in the source
tree or in the next test run. A directory holding an ``app.py`` module is
served as the ASGI application that module exposes; any other directory is
served as static content.
"""

from __future__ import annotations

import contextlib
import importlib.util
import shutil
import sys
import tempfile
import uuid
from pathlib import Path
from typing import Any

from starlette.staticfiles import StaticFiles

from .constants import DEFAULT_APPLICATION_SERVER_PORT, LOCALHOST_PATTERN
from .exceptions import HarnessStateError, ResourceStartupError, ResourceTeardownError
from .logging_config import get_logger
from .server_thread import BackgroundServer

logger = get_logger(__name__)

DEFAULT_ENTRY_MODULE = "app"
DEFAULT_APP_ATTRIBUTE = "app"
WORKING_DIR_PREFIX = "security-harness-"


class EmbeddedApplicationHost:
    def __init__(
        self,
        *,
        entry_module: str = DEFAULT_ENTRY_MODULE,
        app_attribute: str = DEFAULT_APP_ATTRIBUTE,
        host: str | None = None,
    ):
        self._entry_module = entry_module
        self._app_attribute = app_attribute
        self._host = host
        self._server: BackgroundServer | None = None
        self._working_dir: Path | None = None
        self._module_name: str | None = None
        self._port: int | None = None

    @property
    def port(self) -> int:
        if self._port is None:
            raise HarnessStateError("application server has not been started")
        return self._port

    @property
    def base_url(self) -> str:
        return LOCALHOST_PATTERN.format(port=self.port)

    @property
    def working_dir(self) -> Path | None:
        return self._working_dir

    @property
    def is_running(self) -> bool:
        return self._server is not None and self._server.is_running

    def start(self, webapp_dir: str | Path, port: int = DEFAULT_APPLICATION_SERVER_PORT) -> str:
        """Boot the web application on ``port``.

        Args:
            webapp_dir: Directory holding the web application (e.g. "tests/webapp")
            port: Port the application server listens on

        Returns:
            Base URL of the running application server

        Raises:
            HarnessStateError: If the host was already started
            ResourceStartupError: If the directory is missing, the application
                cannot be loaded or the port cannot be bound
        """
        if self._server is not None:
            raise HarnessStateError("application server can only be started once")

        source = Path(webapp_dir).absolute()
        if not source.is_dir():
            logger.error("application_server_start_failed", port=port, webapp_dir=str(source))
            raise ResourceStartupError(f"web application directory {source} does not exist")

        working_dir = Path(tempfile.mkdtemp(prefix=WORKING_DIR_PREFIX))
        try:
            webapp_copy = working_dir / "webapp"
            shutil.copytree(source, webapp_copy)
            app = self._load_app(webapp_copy)
            server = BackgroundServer(app, name="application-server", port=port, host=self._host)
            self._port = server.start()
        except Exception as exc:
            self._unload_modules(working_dir)
            shutil.rmtree(working_dir, ignore_errors=True)
            logger.error(
                "application_server_start_failed",
                port=port,
                webapp_dir=str(source),
                error=str(exc),
            )
            if isinstance(exc, ResourceStartupError):
                raise
            raise ResourceStartupError(
                f"failed to start the application server on port {port}: {exc}"
            ) from exc

        self._server = server
        self._working_dir = working_dir
        logger.info(
            "application_server_started",
            port=self._port,
            webapp_dir=str(source),
            working_dir=str(working_dir),
        )
        return self.base_url

    def _load_app(self, directory: Path) -> Any:
        entry = directory / f"{self._entry_module}.py"
        if not entry.is_file():
            logger.info("application_server_static_content", directory=str(directory))
            return StaticFiles(directory=directory, html=True)

        module_name = f"_security_harness_webapp_{uuid.uuid4().hex}"
        spec = importlib.util.spec_from_file_location(module_name, entry)
        if spec is None or spec.loader is None:
            raise ResourceStartupError(f"cannot load {entry}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        self._module_name = module_name
        # Sibling modules of the entry point must be importable while it loads.
        sys.path.insert(0, str(directory))
        try:
            spec.loader.exec_module(module)
        finally:
            # The application may already have removed the entry itself.
            with contextlib.suppress(ValueError):
                sys.path.remove(str(directory))

        app = getattr(module, self._app_attribute, None)
        if app is None:
            raise ResourceStartupError(f"{entry} does not define '{self._app_attribute}'")
        return app

    def _unload_modules(self, working_dir: Path | None) -> None:
        """Forget the entry module and every module loaded from the working area.

        Sibling modules are cached under their plain names, so a later start
        would otherwise reuse another run's copy.
        """
        if self._module_name is not None:
            sys.modules.pop(self._module_name, None)
            self._module_name = None
        if working_dir is None:
            return

        for name, module in list(sys.modules.items()):
            location = getattr(module, "__file__", None)
            if location and Path(location).is_relative_to(working_dir):
                sys.modules.pop(name, None)
                logger.debug("application_module_unloaded", module=name)

    def stop(self) -> None:
        """Stop the server and delete the working area.

        Both steps are attempted even if the first one fails.

        Raises:
            ResourceTeardownError: If either step failed
        """
        errors: list[BaseException] = []

        if self._server is not None:
            try:
                self._server.stop()
            except ResourceTeardownError as exc:
                logger.error("application_server_stop_failed", port=self._port, error=str(exc))
                errors.append(exc)
        self._unload_modules(self._working_dir)

        if self._working_dir is not None:
            try:
                shutil.rmtree(self._working_dir)
            except OSError as exc:
                logger.error(
                    "application_server_cleanup_failed",
                    working_dir=str(self._working_dir),
                    error=str(exc),
                )
                errors.append(exc)
            self._working_dir = None

        if errors:
            raise ResourceTeardownError("Failed to properly stop the application server!", errors)
        logger.info("application_server_stopped", port=self._port)

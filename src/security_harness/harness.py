"""Lifecycle controller tying the mock identity service, the optional
application server and the token generator together.

Usage:
    harness = (
        SecurityTestHarness.get_instance(Service.XSUAA)
        .use_application_server("tests/webapp", port=8181)
        .set_client_id("sb-my-app")
    )
    harness.setup()
    try:
        token = harness.create_token()
        ...
    finally:
        harness.teardown()

or, equivalently, ``with harness: ...``.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from types import TracebackType
from typing import Any
from urllib.parse import urlsplit

from pydantic import ValidationError

from .app_host import EmbeddedApplicationHost
from .binding import TokenGeneratorBinding
from .constants import (
    DEFAULT_APPLICATION_SERVER_PORT,
    KEY_ID_PLACEHOLDER,
    PUBLIC_KEY_PLACEHOLDER,
    TOKEN_KEYS_TEMPLATE,
)
from .endpoints import resolve_endpoints
from .exceptions import ConfigurationError, HarnessStateError, ResourceTeardownError
from .jwt_generator import JwtGenerator
from .keys import RSAKeys
from .logging_config import get_logger, mask_token
from .mock_server import MockIdentityServer
from .models import EndpointSet, HarnessConfig, HarnessState, Service, StubDefinition, Token

logger = get_logger(__name__)


def create_default_token_key_response(keys: RSAKeys, key_id: str) -> str:
    """Render the key set document published at the discovery endpoint."""
    template = (
        resources.files("security_harness")
        .joinpath("templates")
        .joinpath(TOKEN_KEYS_TEMPLATE)
        .read_text(encoding="utf-8")
    )
    return template.replace(KEY_ID_PLACEHOLDER, key_id).replace(
        PUBLIC_KEY_PLACEHOLDER, keys.encoded_public_key_b64()
    )


class SecurityTestHarness:
    """Sets up a mock identity service and a matching token generator for a test.

    Configure the harness first; every setter raises ``HarnessStateError``
    once ``setup()`` has been called. Resources acquired by ``setup()`` are
    released by ``teardown()``, which must be called on every exit path,
    including after a failed ``setup()``.
    """

    def __init__(self, service: Service):
        self._config = HarnessConfig(service=service)
        self._keys = RSAKeys.generate()
        self._state = HarnessState.NOT_STARTED
        self._mock_server: MockIdentityServer | None = None
        self._app_host: EmbeddedApplicationHost | None = None
        self._endpoints: EndpointSet | None = None
        self._binding: TokenGeneratorBinding | None = None

    @classmethod
    def get_instance(cls, service: Service) -> SecurityTestHarness:
        return cls(service)

    # Configuration

    def _require_not_started(self, operation: str) -> None:
        if self._state is not HarnessState.NOT_STARTED:
            raise HarnessStateError(
                f"{operation} must be called before setup() (state: {self._state.value})"
            )

    def _configure(self, operation: str, **changes: Any) -> SecurityTestHarness:
        self._require_not_started(operation)
        try:
            self._config = HarnessConfig.model_validate({**self._config.model_dump(), **changes})
        except ValidationError as exc:
            raise ConfigurationError(f"invalid {operation} value: {exc}") from exc
        return self

    def use_application_server(
        self, webapp_dir: str | Path, port: int = DEFAULT_APPLICATION_SERVER_PORT
    ) -> SecurityTestHarness:
        """Boot the web application in ``webapp_dir`` on ``port`` during setup.

        Args:
            webapp_dir: e.g. "tests/webapp"
            port: Port on which the application server is started

        Returns:
            The harness itself
        """
        return self._configure(
            "use_application_server",
            use_application_server=True,
            webapp_dir=Path(webapp_dir),
            application_server_port=port,
        )

    def set_port(self, mock_server_port: int) -> SecurityTestHarness:
        """Set the port of the mock identity service; 0 picks a free port."""
        return self._configure("set_port", mock_server_port=mock_server_port)

    def set_client_id(self, client_id: str) -> SecurityTestHarness:
        """Set the client id (cid claim) of generated tokens."""
        return self._configure("set_client_id", client_id=client_id)

    def set_key_id(self, key_id: str) -> SecurityTestHarness:
        return self._configure("set_key_id", key_id=key_id)

    def set_keys(self, keys: RSAKeys) -> SecurityTestHarness:
        """Replace the key pair.

        The private key signs generated tokens; the public key is published
        at the discovery endpoint of the mock identity service.
        """
        self._require_not_started("set_keys")
        self._keys = keys
        return self

    # Lifecycle

    def setup(self) -> None:
        """Start all resources and register the discovery endpoint stub.

        Raises:
            HarnessStateError: If setup() was already called
            UnsupportedServiceError: If the service has no endpoint resolver
            ResourceStartupError: If a server fails to start
        """
        self._require_not_started("setup()")
        config = self._config
        keys = self._keys
        self._state = HarnessState.STARTING
        logger.info(
            "harness_setup_started",
            service=config.service.value,
            mock_server_port=config.mock_server_port,
            use_application_server=config.use_application_server,
        )

        try:
            if config.use_application_server and config.webapp_dir is not None:
                app_host = EmbeddedApplicationHost()
                app_host.start(config.webapp_dir, config.application_server_port)
                self._app_host = app_host

            mock_server = MockIdentityServer(port=config.mock_server_port)
            mock_server.start()
            self._mock_server = mock_server

            endpoints = resolve_endpoints(config.service, mock_server.base_url)
            self._endpoints = endpoints

            mock_server.stub(
                StubDefinition(
                    method="GET",
                    path=urlsplit(endpoints.jwks_uri).path,
                    body=create_default_token_key_response(keys, config.key_id),
                )
            )
            self._binding = TokenGeneratorBinding(
                client_id=config.client_id,
                private_key=keys.private_key,
                jwks_url=endpoints.jwks_uri,
                key_id=config.key_id,
            )
        except Exception as exc:
            self._state = HarnessState.FAILED
            logger.error("harness_setup_failed", service=config.service.value, error=str(exc))
            raise

        self._state = HarnessState.RUNNING
        logger.info(
            "harness_setup_completed",
            jwks_url=endpoints.jwks_uri,
            application_server_url=self.application_server_url,
        )

    def teardown(self) -> None:
        """Stop the mock identity service, then the application server.

        Every step is attempted even if an earlier one fails. Calling
        teardown() before setup() or a second time does nothing.

        Raises:
            ResourceTeardownError: After all steps ran, if any of them failed
        """
        if self._state in (HarnessState.NOT_STARTED, HarnessState.STOPPED):
            return
        if self._mock_server is None and self._app_host is None and self._state is HarnessState.FAILED:
            self._state = HarnessState.STOPPED
            return

        self._state = HarnessState.STOPPING
        errors: list[BaseException] = []

        if self._mock_server is not None:
            try:
                self._mock_server.stop()
            except Exception as exc:
                logger.error("mock_server_stop_failed", error=str(exc))
                errors.append(exc)
            self._mock_server = None

        if self._app_host is not None:
            try:
                self._app_host.stop()
            except Exception as exc:
                logger.error("application_server_teardown_failed", error=str(exc))
                errors.append(exc)
            self._app_host = None

        self._binding = None
        if errors:
            self._state = HarnessState.FAILED
            raise ResourceTeardownError("harness teardown failed", errors)
        self._state = HarnessState.STOPPED
        logger.info("harness_teardown_completed")

    def __enter__(self) -> SecurityTestHarness:
        try:
            self.setup()
        except Exception:
            try:
                self.teardown()
            except ResourceTeardownError as exc:
                logger.error("harness_cleanup_after_failed_setup_failed", error=str(exc))
            raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.teardown()

    # Accessors

    @property
    def state(self) -> HarnessState:
        return self._state

    @property
    def config(self) -> HarnessConfig:
        return self._config

    @property
    def keys(self) -> RSAKeys:
        return self._keys

    @property
    def service(self) -> Service:
        return self._config.service

    @property
    def endpoints(self) -> EndpointSet | None:
        return self._endpoints

    @property
    def mock_server(self) -> MockIdentityServer | None:
        """The running mock identity service, for stubbing further endpoints.

        None until setup() has started it.
        """
        return self._mock_server

    @property
    def application_server_url(self) -> str | None:
        """Base URL of the application server, or None when it is not running."""
        if self._app_host is None or not self._app_host.is_running:
            return None
        return self._app_host.base_url

    def get_preconfigured_jwt_generator(self) -> JwtGenerator:
        """Return a generator producing tokens the mock identity service can verify.

        Raises:
            HarnessStateError: If the harness is not running
        """
        if self._state is not HarnessState.RUNNING or self._binding is None:
            raise HarnessStateError(
                f"token generator is available after setup() (state: {self._state.value})"
            )
        return self._binding.create_generator(self._config.service)

    get_token_generator = get_preconfigured_jwt_generator

    def create_token(self) -> Token:
        """Create a basic token; use the preconfigured generator for further claims."""
        token = self.get_preconfigured_jwt_generator().create_token()
        logger.debug("harness_token_created", token=mask_token(token.token_value))
        return token

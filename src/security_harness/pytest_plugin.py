"""pytest fixtures for the security test harness.

Loaded automatically through the ``pytest11`` entry point. Harnesses created
through ``security_harness_factory`` are torn down after the test; a failed
teardown is reported as an error of the fixture, so the test keeps its own
outcome and the resource leak still shows up in the run.

Set ``security_harness_configure_logging = true`` in the pytest ini options to
have the plugin configure structlog for the session.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest

from .exceptions import ResourceTeardownError
from .harness import SecurityTestHarness
from .logging_config import configure_logging
from .models import Service


CONFIGURE_LOGGING_INI = "security_harness_configure_logging"


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addini(
        CONFIGURE_LOGGING_INI,
        "Configure structlog for harness events at session start",
        type="bool",
        default=False,
    )


def pytest_configure(config: pytest.Config) -> None:
    # Opt-in: the host project owns its logging setup.
    if config.getini(CONFIGURE_LOGGING_INI):
        configure_logging()


@pytest.fixture
def security_harness_factory() -> Iterator[Callable[..., SecurityTestHarness]]:
    """Create unconfigured harnesses; call ``setup()`` on them in the test."""
    harnesses: list[SecurityTestHarness] = []

    def _create(service: Service = Service.XSUAA) -> SecurityTestHarness:
        harness = SecurityTestHarness.get_instance(service)
        harnesses.append(harness)
        return harness

    yield _create

    errors: list[BaseException] = []
    for harness in reversed(harnesses):
        try:
            harness.teardown()
        except ResourceTeardownError as exc:
            errors.append(exc)
    if errors:
        raise ResourceTeardownError("security harness teardown failed", errors)


@pytest.fixture
def security_harness(
    security_harness_factory: Callable[..., SecurityTestHarness],
) -> SecurityTestHarness:
    """A running XSUAA harness with default settings."""
    harness = security_harness_factory(Service.XSUAA)
    harness.setup()
    return harness

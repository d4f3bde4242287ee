from types import SimpleNamespace

import pytest
import structlog

from security_harness.pytest_plugin import CONFIGURE_LOGGING_INI, pytest_configure


def _config(configure_logging: bool) -> SimpleNamespace:
    return SimpleNamespace(getini=lambda name: configure_logging if name == CONFIGURE_LOGGING_INI else None)


@pytest.mark.unit
def test_logging_is_opt_in_for_this_session(pytestconfig: pytest.Config) -> None:
    assert pytestconfig.getini(CONFIGURE_LOGGING_INI) is False


@pytest.mark.unit
@pytest.mark.usefixtures("restore_logging")
def test_session_without_opt_in_keeps_structlog_defaults() -> None:
    default_processors = structlog.get_config()["processors"]

    pytest_configure(_config(False))

    assert not structlog.is_configured()
    assert structlog.get_config()["processors"] == default_processors


@pytest.mark.unit
@pytest.mark.usefixtures("restore_logging")
def test_opt_in_configures_structlog(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")

    pytest_configure(_config(True))

    assert structlog.is_configured()
    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)

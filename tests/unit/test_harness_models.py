from pathlib import Path

import pytest
from pydantic import ValidationError

from security_harness.constants import DEFAULT_APPLICATION_SERVER_PORT, DEFAULT_KEY_ID
from security_harness.models import HarnessConfig, Service, StubDefinition, Token


@pytest.mark.unit
def test_harness_config_defaults() -> None:
    config = HarnessConfig(service=Service.XSUAA)
    assert config.mock_server_port == 0
    assert config.use_application_server is False
    assert config.application_server_port == DEFAULT_APPLICATION_SERVER_PORT
    assert config.key_id == DEFAULT_KEY_ID


@pytest.mark.unit
def test_harness_config_is_frozen() -> None:
    config = HarnessConfig(service=Service.XSUAA)
    with pytest.raises(ValidationError):
        config.mock_server_port = 8080  # type: ignore[misc]


@pytest.mark.unit
def test_harness_config_requires_webapp_dir_for_application_server() -> None:
    with pytest.raises(ValidationError):
        HarnessConfig(service=Service.XSUAA, use_application_server=True)


@pytest.mark.unit
def test_harness_config_accepts_application_server() -> None:
    config = HarnessConfig(
        service=Service.XSUAA,
        use_application_server=True,
        webapp_dir=Path("tests/webapp"),
        application_server_port=8181,
    )
    assert config.webapp_dir == Path("tests/webapp")


@pytest.mark.unit
@pytest.mark.parametrize("port", [-1, 65536])
def test_harness_config_rejects_invalid_mock_server_port(port: int) -> None:
    with pytest.raises(ValidationError):
        HarnessConfig(service=Service.XSUAA, mock_server_port=port)


@pytest.mark.unit
def test_harness_config_rejects_application_server_port_zero() -> None:
    with pytest.raises(ValidationError):
        HarnessConfig(
            service=Service.XSUAA,
            use_application_server=True,
            webapp_dir=Path("webapp"),
            application_server_port=0,
        )


@pytest.mark.unit
def test_stub_definition_normalizes_method() -> None:
    stub = StubDefinition(method=" post ", path="/oauth/token")
    assert stub.method == "POST"
    assert stub.status_code == 200
    assert stub.content_type == "application/json"


@pytest.mark.unit
def test_stub_definition_requires_absolute_path() -> None:
    with pytest.raises(ValidationError):
        StubDefinition(path="token_keys")


@pytest.mark.unit
def test_stub_definition_rejects_empty_method() -> None:
    with pytest.raises(ValidationError):
        StubDefinition(method="", path="/token_keys")


@pytest.mark.unit
def test_token_accessors() -> None:
    token = Token(
        token_value="a.b.c",
        headers={"kid": "default-kid", "jku": "http://localhost:1234/token_keys"},
        claims={"cid": "sb-client"},
    )
    assert token.client_id == "sb-client"
    assert token.key_id == "default-kid"
    assert token.jwks_url == "http://localhost:1234/token_keys"
    assert token.authorization_header() == "Bearer a.b.c"
    assert str(token) == "a.b.c"

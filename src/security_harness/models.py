from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import (
    DEFAULT_APPLICATION_SERVER_PORT,
    DEFAULT_CLIENT_ID,
    DEFAULT_KEY_ID,
    TokenClaims,
    TokenHeader,
)


class Service(str, Enum):
    """Identity services a harness can impersonate."""

    XSUAA = "XSUAA"
    IAS = "IAS"


class HarnessState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    FAILED = "FAILED"


class HarnessConfig(BaseModel):
    """Test-supplied harness configuration.

    Instances are frozen. The harness replaces its config on every setter
    call, so the whole value is re-validated each time and can no longer
    change once ``setup()`` has begun.
    """

    model_config = ConfigDict(frozen=True)

    service: Service
    mock_server_port: int = Field(default=0, ge=0, le=65535)
    use_application_server: bool = False
    webapp_dir: Path | None = None
    application_server_port: int = Field(default=DEFAULT_APPLICATION_SERVER_PORT, ge=1, le=65535)
    client_id: str | None = DEFAULT_CLIENT_ID
    key_id: str = Field(default=DEFAULT_KEY_ID, min_length=1)

    @model_validator(mode="after")
    def _validate_application_server(self) -> HarnessConfig:
        if self.use_application_server and self.webapp_dir is None:
            raise ValueError("use_application_server requires webapp_dir")
        return self


class EndpointSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: str
    token_endpoint: str
    authorize_endpoint: str
    delegation_token_endpoint: str
    jwks_uri: str


class StubDefinition(BaseModel):
    """A canned response served by the mock identity server."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str
    body: str = ""
    status_code: int = Field(default=200, ge=100, le=599)
    content_type: str = "application/json"

    @field_validator("method")
    @classmethod
    def _normalize_method(cls, value: str) -> str:
        if not value or value.strip() == "":
            raise ValueError("method must be non-empty")
        return value.strip().upper()

    @field_validator("path")
    @classmethod
    def _path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("path must start with '/'")
        return value


class Token(BaseModel):
    """A signed test token together with its decoded header and claims."""

    model_config = ConfigDict(frozen=True)

    token_value: str
    headers: dict[str, Any]
    claims: dict[str, Any]

    @property
    def client_id(self) -> str | None:
        return self.claims.get(TokenClaims.XSUAA.CLIENT_ID)

    @property
    def key_id(self) -> str | None:
        return self.headers.get(TokenHeader.KEY_ID)

    @property
    def jwks_url(self) -> str | None:
        return self.headers.get(TokenHeader.JWKS_URL)

    def authorization_header(self) -> str:
        return f"Bearer {self.token_value}"

    def __str__(self) -> str:
        return self.token_value

from __future__ import annotations

from .constants import XsuaaPaths
from .exceptions import UnsupportedServiceError
from .models import EndpointSet, Service


class XsuaaDefaultEndpoints:
    """Default XSUAA endpoint URLs relative to a base URL."""

    def __init__(self, base_url: str):
        if not base_url or base_url.strip() == "":
            raise ValueError("base_url must be non-empty")
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def token_endpoint(self) -> str:
        return self._base_url + XsuaaPaths.TOKEN

    @property
    def authorize_endpoint(self) -> str:
        return self._base_url + XsuaaPaths.AUTHORIZE

    @property
    def delegation_token_endpoint(self) -> str:
        return self._base_url + XsuaaPaths.DELEGATION_TOKEN

    @property
    def jwks_uri(self) -> str:
        return self._base_url + XsuaaPaths.TOKEN_KEYS

    def to_endpoint_set(self) -> EndpointSet:
        return EndpointSet(
            base_url=self.base_url,
            token_endpoint=self.token_endpoint,
            authorize_endpoint=self.authorize_endpoint,
            delegation_token_endpoint=self.delegation_token_endpoint,
            jwks_uri=self.jwks_uri,
        )


def resolve_endpoints(service: Service, base_url: str) -> EndpointSet:
    """Resolve the endpoint URLs of an identity service.

    Dispatch is explicit: supporting another service means adding a branch
    here, not registering a resolver at runtime.

    Args:
        service: Identity service kind
        base_url: Base URL of the (mock) identity service

    Returns:
        The resolved endpoint set

    Raises:
        UnsupportedServiceError: If the service has no resolver
    """
    if service is Service.XSUAA:
        return XsuaaDefaultEndpoints(base_url).to_endpoint_set()
    raise UnsupportedServiceError(f"Service {service.value} is not yet supported.")

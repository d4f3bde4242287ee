from .app_host import EmbeddedApplicationHost
from .binding import TokenGeneratorBinding
from .constants import DEFAULT_APPLICATION_SERVER_PORT, TokenClaims, TokenHeader
from .endpoints import XsuaaDefaultEndpoints, resolve_endpoints
from .exceptions import (
    ConfigurationError,
    HarnessError,
    HarnessStateError,
    KeyMaterialError,
    ResourceStartupError,
    ResourceTeardownError,
    TokenGenerationError,
    UnsupportedServiceError,
)
from .harness import SecurityTestHarness, create_default_token_key_response
from .jwt_generator import JwtGenerator
from .keys import RSAKeys
from .mock_server import MockIdentityServer
from .models import (
    EndpointSet,
    HarnessConfig,
    HarnessState,
    Service,
    StubDefinition,
    Token,
)

__all__ = [
    # Models
    "EndpointSet",
    "HarnessConfig",
    "HarnessState",
    "Service",
    "StubDefinition",
    "Token",
    # Components
    "EmbeddedApplicationHost",
    "JwtGenerator",
    "MockIdentityServer",
    "RSAKeys",
    "SecurityTestHarness",
    "TokenGeneratorBinding",
    "XsuaaDefaultEndpoints",
    # Functions
    "create_default_token_key_response",
    "resolve_endpoints",
    # Constants
    "DEFAULT_APPLICATION_SERVER_PORT",
    "TokenClaims",
    "TokenHeader",
    # Exceptions
    "ConfigurationError",
    "HarnessError",
    "HarnessStateError",
    "KeyMaterialError",
    "ResourceStartupError",
    "ResourceTeardownError",
    "TokenGenerationError",
    "UnsupportedServiceError",
]

__version__ = "0.1.0"

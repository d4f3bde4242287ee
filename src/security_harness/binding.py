from __future__ import annotations

from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric import rsa

from .constants import TokenClaims, TokenHeader
from .jwt_generator import JwtGenerator
from .models import Service


@dataclass(frozen=True)
class TokenGeneratorBinding:
    """Snapshot of everything a generator needs to mint tokens for the mock server."""

    client_id: str | None
    private_key: rsa.RSAPrivateKey
    jwks_url: str
    key_id: str

    def apply(self, generator: JwtGenerator) -> JwtGenerator:
        return (
            generator.with_claim_value(TokenClaims.XSUAA.CLIENT_ID, self.client_id)
            .with_private_key(self.private_key)
            .with_header_parameter(TokenHeader.JWKS_URL, self.jwks_url)
            .with_header_parameter(TokenHeader.KEY_ID, self.key_id)
        )

    def create_generator(self, service: Service) -> JwtGenerator:
        return self.apply(JwtGenerator.get_instance(service))

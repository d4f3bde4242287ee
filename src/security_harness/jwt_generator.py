"""Fluent generator for signed test tokens.

Usage:
    token = (
        JwtGenerator.get_instance(Service.XSUAA)
        .with_private_key(keys.private_key)
        .with_claim_value(TokenClaims.XSUAA.CLIENT_ID, "sb-client")
        .with_header_parameter(TokenHeader.JWKS_URL, "http://localhost:50123/token_keys")
        .create_token()
    )
"""

from __future__ import annotations

import os
import time
import uuid
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from .constants import DEFAULT_ALGORITHM, GRANT_TYPE_CLIENT_CREDENTIALS, TokenClaims, TokenHeader
from .exceptions import TokenGenerationError
from .logging_config import get_logger, mask_token
from .models import Service, Token

logger = get_logger(__name__)

TOKEN_TTL_DEFAULT = 3600


def _default_ttl() -> int:
    return int(os.environ.get("SECURITY_HARNESS_TOKEN_TTL", str(TOKEN_TTL_DEFAULT)))


class JwtGenerator:
    """Builder for RS256-signed JWTs shaped like tokens of an identity service."""

    def __init__(self, service: Service):
        self._service = service
        self._private_key: rsa.RSAPrivateKey | None = None
        self._claims: dict[str, Any] = {}
        self._headers: dict[str, Any] = {}
        self._ttl = _default_ttl()
        self._expires_at: int | None = None

    @classmethod
    def get_instance(cls, service: Service) -> JwtGenerator:
        return cls(service)

    @property
    def service(self) -> Service:
        return self._service

    def with_private_key(self, private_key: rsa.RSAPrivateKey) -> JwtGenerator:
        self._private_key = private_key
        return self

    def with_claim_value(self, name: str, value: Any) -> JwtGenerator:
        """Set a claim; a ``None`` value removes it instead."""
        if value is None:
            self._claims.pop(name, None)
        else:
            self._claims[name] = value
        return self

    def with_header_parameter(self, name: str, value: Any) -> JwtGenerator:
        if value is None:
            self._headers.pop(name, None)
        else:
            self._headers[name] = value
        return self

    def with_scopes(self, *scopes: str) -> JwtGenerator:
        self._claims[TokenClaims.XSUAA.SCOPES] = list(scopes)
        return self

    def with_expiration(self, ttl_seconds: int) -> JwtGenerator:
        """Set time-to-live in seconds (negative values yield expired tokens)."""
        self._ttl = ttl_seconds
        self._expires_at = None
        return self

    def with_expires_at(self, expires_at: int) -> JwtGenerator:
        self._expires_at = expires_at
        return self

    def _default_claims(self, issued_at: int) -> dict[str, Any]:
        claims: dict[str, Any] = {
            TokenClaims.ISSUED_AT: issued_at,
            TokenClaims.EXPIRATION: (
                self._expires_at if self._expires_at is not None else issued_at + self._ttl
            ),
            TokenClaims.JWT_ID: uuid.uuid4().hex,
        }
        if self._service is Service.XSUAA:
            claims[TokenClaims.XSUAA.GRANT_TYPE] = GRANT_TYPE_CLIENT_CREDENTIALS
            client_id = self._claims.get(TokenClaims.XSUAA.CLIENT_ID)
            if client_id is not None:
                claims[TokenClaims.XSUAA.AUTHORIZATION_PARTY] = client_id
        return claims

    def create_token(self) -> Token:
        """Sign the configured claims and headers.

        Returns:
            The signed token with its header and claims

        Raises:
            TokenGenerationError: If no private key was configured or signing fails
        """
        if self._private_key is None:
            raise TokenGenerationError("a private key is required to sign tokens")

        claims = self._default_claims(int(time.time()))
        claims.update(self._claims)
        headers = {TokenHeader.TYPE: "JWT", **self._headers}

        try:
            encoded = jwt.encode(claims, self._private_key, algorithm=DEFAULT_ALGORITHM, headers=headers)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            logger.error("token_signing_failed", error=str(exc), exc_info=True)
            raise TokenGenerationError(f"failed to sign token: {exc}") from exc

        token = Token(
            token_value=encoded,
            headers=jwt.get_unverified_header(encoded),
            claims=claims,
        )
        logger.debug(
            "token_created",
            service=self._service.value,
            client_id=token.client_id,
            token=mask_token(encoded),
        )
        return token

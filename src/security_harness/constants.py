"""Claim, header and endpoint names shared by the generator and the resolver."""

from __future__ import annotations

LOCALHOST_PATTERN = "http://localhost:{port}"
DEFAULT_APPLICATION_SERVER_PORT = 44195
DEFAULT_CLIENT_ID = "sb-clientId!20"
DEFAULT_KEY_ID = "default-kid"
DEFAULT_ALGORITHM = "RS256"

KEY_ID_PLACEHOLDER = "$kid"
PUBLIC_KEY_PLACEHOLDER = "$public_key"
TOKEN_KEYS_TEMPLATE = "token_keys_template.json"


class TokenHeader:
    ALGORITHM = "alg"
    KEY_ID = "kid"
    JWKS_URL = "jku"
    TYPE = "typ"


class TokenClaims:
    ISSUED_AT = "iat"
    EXPIRATION = "exp"
    JWT_ID = "jti"

    class XSUAA:
        CLIENT_ID = "cid"
        AUTHORIZATION_PARTY = "client_id"
        SCOPES = "scope"
        GRANT_TYPE = "grant_type"


class XsuaaPaths:
    TOKEN = "/oauth/token"
    AUTHORIZE = "/oauth/authorize"
    DELEGATION_TOKEN = "/delegation/token"
    TOKEN_KEYS = "/token_keys"


GRANT_TYPE_CLIENT_CREDENTIALS = "client_credentials"

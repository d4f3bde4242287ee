"""Helpers for reading the key set published by the mock identity service."""

from __future__ import annotations

import base64
import json
import socket
from typing import Any, cast
from urllib import error, request

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

PEM_HEADER = "-----BEGIN PUBLIC KEY-----"
PEM_FOOTER = "-----END PUBLIC KEY-----"


def fetch_json(url: str, timeout: float = 5.0) -> Any:
    with request.urlopen(url, timeout=timeout) as response:
        return json.loads(response.read().decode("utf-8"))


def fetch(url: str, headers: dict[str, str] | None = None, timeout: float = 5.0) -> tuple[int, str]:
    """GET ``url`` and return status code and body, including for error statuses."""
    req = request.Request(url, headers=headers or {})
    try:
        with request.urlopen(req, timeout=timeout) as response:
            return response.status, response.read().decode("utf-8")
    except error.HTTPError as exc:
        return exc.code, exc.read().decode("utf-8")


def public_key_from_token_key(key: dict[str, Any]) -> rsa.RSAPublicKey:
    body = key["value"].replace(PEM_HEADER, "").replace(PEM_FOOTER, "").strip()
    public_key = serialization.load_der_public_key(base64.b64decode(body))
    return cast(rsa.RSAPublicKey, public_key)


def verify_with_key_set(token_value: str, key_set: dict[str, Any]) -> dict[str, Any]:
    """Verify a token against the key of a key set whose kid matches the token header."""
    kid = jwt.get_unverified_header(token_value).get("kid")
    matching = [key for key in key_set["keys"] if key.get("kid") == kid]
    if len(matching) != 1:
        raise LookupError(f"expected exactly one key with kid {kid!r}, found {len(matching)}")
    public_key = public_key_from_token_key(matching[0])
    return cast(dict[str, Any], jwt.decode(token_value, public_key, algorithms=["RS256"]))


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("localhost", 0))
        return int(sock.getsockname()[1])


def can_connect(port: int, host: str = "localhost", timeout: float = 1.0) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False

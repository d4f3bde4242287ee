"""RSA key material used to sign test tokens and publish their public key."""

from __future__ import annotations

import base64
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .exceptions import KeyMaterialError

DEFAULT_KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


class RSAKeys:
    """An RSA private/public key pair.

    Usage:
        keys = RSAKeys.generate()
        keys = RSAKeys.from_key_files("private.pem", "public.pem")
    """

    def __init__(self, private_key: rsa.RSAPrivateKey, public_key: rsa.RSAPublicKey | None = None):
        if public_key is None:
            public_key = private_key.public_key()
        elif public_key.public_numbers() != private_key.public_key().public_numbers():
            raise KeyMaterialError("public key does not belong to the private key")
        self._private_key = private_key
        self._public_key = public_key

    @classmethod
    def generate(cls, key_size: int = DEFAULT_KEY_SIZE) -> RSAKeys:
        private_key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)
        return cls(private_key)

    @classmethod
    def from_pem(cls, private_pem: bytes | str, public_pem: bytes | str | None = None) -> RSAKeys:
        """Load a key pair from PEM data.

        Args:
            private_pem: PKCS#8 or traditional OpenSSL private key
            public_pem: SubjectPublicKeyInfo public key; derived when omitted

        Returns:
            The loaded key pair

        Raises:
            KeyMaterialError: If the PEM data is not an RSA key or the halves do not match
        """
        try:
            private_key = serialization.load_pem_private_key(_as_bytes(private_pem), password=None)
            public_key = (
                serialization.load_pem_public_key(_as_bytes(public_pem))
                if public_pem is not None
                else None
            )
        except (ValueError, TypeError) as exc:
            raise KeyMaterialError(f"failed to load key material: {exc}") from exc

        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise KeyMaterialError("private key is not an RSA key")
        if public_key is not None and not isinstance(public_key, rsa.RSAPublicKey):
            raise KeyMaterialError("public key is not an RSA key")
        return cls(private_key, public_key)

    @classmethod
    def from_key_files(cls, private_key_path: str | Path, public_key_path: str | Path | None = None) -> RSAKeys:
        try:
            private_pem = Path(private_key_path).read_bytes()
            public_pem = Path(public_key_path).read_bytes() if public_key_path is not None else None
        except OSError as exc:
            raise KeyMaterialError(f"failed to read key file: {exc}") from exc
        return cls.from_pem(private_pem, public_pem)

    @property
    def private_key(self) -> rsa.RSAPrivateKey:
        return self._private_key

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self._public_key

    def encoded_public_key(self) -> bytes:
        """Return the DER-encoded SubjectPublicKeyInfo of the public key."""
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def encoded_public_key_b64(self) -> str:
        """Return the encoded public key as standard Base64 without line breaks."""
        return base64.b64encode(self.encoded_public_key()).decode("ascii")

    def private_key_pem(self) -> bytes:
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def public_key_pem(self) -> bytes:
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode("ascii") if isinstance(value, str) else value

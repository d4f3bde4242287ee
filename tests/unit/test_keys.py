import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from security_harness.exceptions import KeyMaterialError
from security_harness.keys import RSAKeys


@pytest.fixture(scope="module")
def keys() -> RSAKeys:
    return RSAKeys.generate()


@pytest.mark.unit
def test_generate_creates_matching_pair(keys: RSAKeys) -> None:
    assert keys.private_key.public_key().public_numbers() == keys.public_key.public_numbers()
    assert keys.private_key.key_size == 2048


@pytest.mark.unit
def test_generate_creates_fresh_keys(keys: RSAKeys) -> None:
    other = RSAKeys.generate()
    assert other.public_key.public_numbers() != keys.public_key.public_numbers()


@pytest.mark.unit
def test_encoded_public_key_is_der_subject_public_key_info(keys: RSAKeys) -> None:
    loaded = serialization.load_der_public_key(keys.encoded_public_key())
    assert loaded.public_numbers() == keys.public_key.public_numbers()  # type: ignore[union-attr]


@pytest.mark.unit
def test_encoded_public_key_b64_is_standard_unwrapped(keys: RSAKeys) -> None:
    encoded = keys.encoded_public_key_b64()
    assert "\n" not in encoded
    assert "-" not in encoded and "_" not in encoded
    assert base64.b64decode(encoded) == keys.encoded_public_key()


@pytest.mark.unit
def test_from_pem_round_trip(keys: RSAKeys) -> None:
    loaded = RSAKeys.from_pem(keys.private_key_pem(), keys.public_key_pem())
    assert loaded.public_key.public_numbers() == keys.public_key.public_numbers()


@pytest.mark.unit
def test_from_pem_accepts_text_and_derives_public_key(keys: RSAKeys) -> None:
    loaded = RSAKeys.from_pem(keys.private_key_pem().decode("ascii"))
    assert loaded.encoded_public_key() == keys.encoded_public_key()


@pytest.mark.unit
def test_from_pem_rejects_mismatched_public_key(keys: RSAKeys) -> None:
    other = RSAKeys.generate()
    with pytest.raises(KeyMaterialError):
        RSAKeys.from_pem(keys.private_key_pem(), other.public_key_pem())


@pytest.mark.unit
def test_from_pem_rejects_garbage() -> None:
    with pytest.raises(KeyMaterialError):
        RSAKeys.from_pem(b"not a key")


@pytest.mark.unit
def test_from_pem_rejects_non_rsa_key() -> None:
    ec_key = ec.generate_private_key(ec.SECP256R1())
    pem = ec_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    with pytest.raises(KeyMaterialError):
        RSAKeys.from_pem(pem)


@pytest.mark.unit
def test_from_key_files(tmp_path, keys: RSAKeys) -> None:
    private_path = tmp_path / "private.pem"
    public_path = tmp_path / "public.pem"
    private_path.write_bytes(keys.private_key_pem())
    public_path.write_bytes(keys.public_key_pem())

    loaded = RSAKeys.from_key_files(private_path, public_path)
    assert loaded.encoded_public_key() == keys.encoded_public_key()


@pytest.mark.unit
def test_from_key_files_missing_file(tmp_path) -> None:
    with pytest.raises(KeyMaterialError):
        RSAKeys.from_key_files(tmp_path / "missing.pem")

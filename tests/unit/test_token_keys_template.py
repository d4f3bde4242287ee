import json

import pytest

from security_harness.harness import create_default_token_key_response
from security_harness.keys import RSAKeys
from shared.jwks import public_key_from_token_key


@pytest.mark.unit
def test_token_key_response_contains_single_key() -> None:
    keys = RSAKeys.generate()
    document = json.loads(create_default_token_key_response(keys, "default-kid"))

    assert len(document["keys"]) == 1
    key = document["keys"][0]
    assert key["kid"] == "default-kid"
    assert key["alg"] == "RS256"
    assert key["kty"] == "RSA"
    assert public_key_from_token_key(key).public_numbers() == keys.public_key.public_numbers()


@pytest.mark.unit
def test_token_key_response_substitutes_placeholders_literally() -> None:
    keys = RSAKeys.generate()
    body = create_default_token_key_response(keys, "my-kid")
    assert "$kid" not in body
    assert "$public_key" not in body
    assert keys.encoded_public_key_b64() in body
    assert '"kid": "my-kid"' in body

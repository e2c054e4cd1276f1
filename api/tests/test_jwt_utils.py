from datetime import timedelta

import pytest
from jose import jwt

from noteshare.auth.jwt_utils import create_access_token, verify_token
from noteshare.config.settings import JWT_ALGORITHM, JWT_SECRET_KEY
from noteshare.core.errors import InvalidToken


def test_token_carries_identity_claims():
    token = create_access_token({"id": 7, "email": "a@x.edu", "name": "Alice"})
    payload = verify_token(token)

    assert payload["id"] == 7
    assert payload["sub"] == "7"
    assert payload["email"] == "a@x.edu"
    assert payload["name"] == "Alice"


def test_no_expiry_unless_requested():
    token = create_access_token({"id": 1, "email": "a@x.edu", "name": "A"})
    assert "exp" not in jwt.get_unverified_claims(token)


def test_expired_token_is_invalid():
    token = create_access_token({"id": 1}, expires_delta=timedelta(seconds=-5))
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_token_signed_with_another_key_is_invalid():
    token = create_access_token({"id": 1}, secret_key="some-other-key")
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_tampered_token_is_invalid():
    token = create_access_token({"id": 1, "email": "a@x.edu", "name": "A"})
    header, payload, signature = token.split(".")
    forged = jwt.encode({"id": 2, "sub": "2"}, "wrong", algorithm=JWT_ALGORITHM).split(".")[1]
    with pytest.raises(InvalidToken):
        verify_token(".".join([header, forged, signature]))


def test_payload_without_id_is_invalid():
    token = jwt.encode({"sub": "x"}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_invalid_token_maps_to_403():
    assert InvalidToken().status_code == 403


def test_claims_must_name_a_user():
    with pytest.raises(ValueError):
        create_access_token({"email": "a@x.edu"})

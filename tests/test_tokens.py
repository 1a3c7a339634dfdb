from datetime import timedelta

import pytest
from jose import jwt

from taskmanager import errors
from taskmanager.tokens import ACCESS, REFRESH, TokenManager

SECRET = "unit-test-secret"


@pytest.fixture()
def manager():
    return TokenManager(SECRET, access_ttl=timedelta(minutes=15), refresh_ttl=timedelta(days=7))


def test_access_token_round_trip(manager):
    claims = manager.validate_token(manager.generate_access_token(42, "a@example.com"))
    assert claims.user_id == 42
    assert claims.email == "a@example.com"
    assert claims.token_type == ACCESS
    assert claims.expires_at - claims.issued_at == timedelta(minutes=15)


def test_refresh_token_has_long_ttl_and_no_email(manager):
    claims = manager.validate_token(manager.generate_refresh_token(42))
    assert claims.user_id == 42
    assert claims.email is None
    assert claims.token_type == REFRESH
    assert claims.expires_at - claims.issued_at == timedelta(days=7)


def test_expired_token(manager):
    expired = TokenManager(SECRET, access_ttl=timedelta(seconds=-5))
    token = expired.generate_access_token(1, "a@example.com")
    with pytest.raises(errors.ExpiredToken):
        manager.validate_token(token)


def test_wrong_secret_is_invalid(manager):
    token = TokenManager("another-secret").generate_access_token(1, "a@example.com")
    with pytest.raises(errors.InvalidToken):
        manager.validate_token(token)


def test_tampered_token_is_invalid(manager):
    header, payload, signature = manager.generate_access_token(1, "a@example.com").split(".")
    tampered = ".".join([header, payload, signature[::-1]])
    with pytest.raises(errors.InvalidToken):
        manager.validate_token(tampered)


def test_wrong_algorithm_is_invalid(manager):
    token = jwt.encode(
        {"sub": "1", "user_id": 1, "type": ACCESS, "iat": 0, "exp": 4102444800},
        SECRET,
        algorithm="HS512",
    )
    with pytest.raises(errors.InvalidToken):
        manager.validate_token(token)


def test_missing_claims_are_invalid(manager):
    token = jwt.encode({"sub": "1", "exp": 4102444800}, SECRET, algorithm="HS256")
    with pytest.raises(errors.InvalidToken):
        manager.validate_token(token)


@pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
def test_malformed_token_is_invalid(manager, token):
    with pytest.raises(errors.InvalidToken):
        manager.validate_token(token)


def test_expired_is_a_kind_of_unauthenticated():
    assert issubclass(errors.ExpiredToken, errors.Unauthenticated)
    assert errors.ExpiredToken().status_code == 401

"""
Unit tests for token_service issue/verify. No database, explicit secrets.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import jwt
import pytest

from sims.app.models.token import TokenType
from sims.app.services import token_service
from sims.app.services.token_service import TokenClaims, TokenError

SECRET = "unit-test-secret"


def _in(seconds: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=seconds)


def test_generate_then_verify_returns_claims():
    expires = _in(600)
    raw = token_service.generate_token(42, expires, TokenType.ACCESS, secret=SECRET)

    claims = token_service.verify_token(raw, TokenType.ACCESS, secret=SECRET)

    assert isinstance(claims, TokenClaims)
    assert claims.user_id == 42
    assert claims.token_type is TokenType.ACCESS
    assert claims.expires == datetime.fromtimestamp(int(expires.timestamp()), tz=timezone.utc)


def test_payload_carries_subject_type_and_jti():
    raw = token_service.generate_token(7, _in(60), TokenType.REFRESH, secret=SECRET)
    payload = jwt.decode(raw, SECRET, algorithms=["HS256"])

    assert payload["sub"] == "7"
    assert payload["type"] == "refresh"
    assert payload["jti"]
    assert payload["iat"] <= payload["exp"]


def test_two_tokens_in_the_same_second_differ():
    expires = _in(60)
    first = token_service.generate_token(1, expires, TokenType.REFRESH, secret=SECRET)
    second = token_service.generate_token(1, expires, TokenType.REFRESH, secret=SECRET)
    assert first != second


def test_other_secret_is_malformed():
    raw = token_service.generate_token(1, _in(60), TokenType.ACCESS, secret="another-secret")
    assert token_service.verify_token(raw, secret=SECRET) is TokenError.MALFORMED


def test_expired_token():
    raw = token_service.generate_token(1, _in(-1), TokenType.ACCESS, secret=SECRET)
    assert token_service.verify_token(raw, secret=SECRET) is TokenError.EXPIRED


def test_wrong_type():
    raw = token_service.generate_token(1, _in(60), TokenType.REFRESH, secret=SECRET)
    assert token_service.verify_token(raw, TokenType.ACCESS, secret=SECRET) is TokenError.WRONG_TYPE


def test_without_expected_type_any_type_verifies():
    raw = token_service.generate_token(1, _in(60), TokenType.RESET_PASSWORD, secret=SECRET)
    claims = token_service.verify_token(raw, secret=SECRET)
    assert claims.token_type is TokenType.RESET_PASSWORD


@pytest.mark.parametrize("raw", ["", "garbage", "a.b.c"])
def test_garbage_is_malformed(raw):
    assert token_service.verify_token(raw, secret=SECRET) is TokenError.MALFORMED


def test_missing_type_claim_is_malformed():
    raw = jwt.encode({"sub": "1", "exp": _in(60)}, SECRET, algorithm="HS256")
    assert token_service.verify_token(raw, secret=SECRET) is TokenError.MALFORMED


def test_unknown_type_claim_is_malformed():
    raw = jwt.encode({"sub": "1", "exp": _in(60), "type": "magic"}, SECRET, algorithm="HS256")
    assert token_service.verify_token(raw, secret=SECRET) is TokenError.MALFORMED


def test_non_numeric_subject_is_malformed():
    raw = jwt.encode({"sub": "alice", "exp": _in(60), "type": "access"}, SECRET, algorithm="HS256")
    assert token_service.verify_token(raw, secret=SECRET) is TokenError.MALFORMED


def test_save_token_refuses_access_tokens():
    session = MagicMock()
    with pytest.raises(ValueError):
        token_service.save_token("raw", 1, _in(60), TokenType.ACCESS, session)
    session.add.assert_not_called()


def test_save_token_stores_refresh_token():
    session = MagicMock()
    record = token_service.save_token("raw", 3, _in(60), TokenType.REFRESH, session)

    session.add.assert_called_once_with(record)
    session.flush.assert_called_once()
    assert record.user_id == 3
    assert record.type is TokenType.REFRESH
    assert record.blacklisted is False


def test_blacklist_token_returns_false_when_not_active():
    session = MagicMock()
    session.execute.return_value.scalars.return_value.first.return_value = None

    assert token_service.blacklist_token("raw", TokenType.REFRESH, session) is False


def test_blacklist_token_marks_record():
    session = MagicMock()
    record = MagicMock(blacklisted=False)
    session.execute.return_value.scalars.return_value.first.return_value = record

    assert token_service.blacklist_token("raw", TokenType.REFRESH, session) is True
    assert record.blacklisted is True

"""
services/token_service.py - Token issuing, verification and persistence.

Token design:
  - Every token is a JWT (HS256) with claims sub (user id as str), iat, exp,
    type (access | refresh | resetPassword) and a random jti so two tokens
    minted in the same second never collide.
  - Access tokens are never stored. Refresh and reset-password tokens are
    stored verbatim in the tokens table so they can be blacklisted and
    consumed exactly once.

verify_token() does not raise. It returns TokenClaims on success or a
TokenError member describing why the token was rejected; callers decide
which AppError (if any) that becomes.

current_app.config is read only for the signing secret, algorithm and
TTLs, and only when the caller does not pass them explicitly.
"""

from __future__ import annotations

import enum
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

import jwt
from flask import current_app, has_app_context
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from sims.app.models.token import Token, TokenType

DEFAULT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    token_type: TokenType
    expires: datetime


class TokenError(enum.Enum):
    MALFORMED  = "malformed"   # undecodable, bad signature or missing claims
    EXPIRED    = "expired"
    WRONG_TYPE = "wrong_type"


# ── Private helpers ────────────────────────────────────────────────────────

def _secret(secret: str | None) -> str:
    if secret is not None:
        return secret
    return current_app.config["JWT_SECRET_KEY"]


def _algorithm() -> str:
    if has_app_context():
        return current_app.config.get("JWT_ALGORITHM", DEFAULT_ALGORITHM)
    return DEFAULT_ALGORITHM


def _expires_in(config_key: str) -> datetime:
    return datetime.now(timezone.utc) + current_app.config[config_key]


# ── Issue / verify ─────────────────────────────────────────────────────────

def generate_token(
        user_id: int,
        expires: datetime,
        token_type: TokenType,
        secret: str | None = None,
) -> str:
    """
    Signs a self-contained token. No persistence.

    `secret` overrides JWT_SECRET_KEY; a token signed with any other secret
    fails verify_token() under the configured one.
    """
    payload = {
        "sub": str(user_id),
        "iat": datetime.now(timezone.utc),
        "exp": expires,
        "type": token_type.value,
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, _secret(secret), algorithm=_algorithm())


def verify_token(
        raw_token: str,
        expected_type: TokenType | None = None,
        secret: str | None = None,
) -> TokenClaims | TokenError:
    """
    Checks signature, expiry (now >= exp is expired) and, when given,
    the token type.
    """
    try:
        payload = jwt.decode(
            raw_token,
            _secret(secret),
            algorithms=[_algorithm()],
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError:
        return TokenError.EXPIRED
    except jwt.InvalidTokenError:
        return TokenError.MALFORMED

    try:
        token_type = TokenType(payload["type"])
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return TokenError.MALFORMED

    if expected_type is not None and token_type is not expected_type:
        return TokenError.WRONG_TYPE

    return TokenClaims(
        user_id=user_id,
        token_type=token_type,
        expires=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


# ── Token store ────────────────────────────────────────────────────────────

def save_token(
        raw_token: str,
        user_id: int,
        expires: datetime,
        token_type: TokenType,
        session: Session,
        blacklisted: bool = False,
) -> Token:
    """Persists a refresh or reset-password token. Flush only; commit is the route's job."""
    if token_type is TokenType.ACCESS:
        raise ValueError("Access tokens are never persisted.")

    record = Token(
        token=raw_token,
        user_id=user_id,
        type=token_type,
        expires=expires,
        blacklisted=blacklisted,
    )
    session.add(record)
    session.flush()
    return record


def find_active_token(
        raw_token: str,
        token_type: TokenType,
        session: Session,
        user_id: int | None = None,
) -> Token | None:
    """Exact-match lookup of a non-blacklisted stored token."""
    stmt = select(Token).where(
        Token.token == raw_token,
        Token.type == token_type,
        Token.blacklisted.is_(False),
    )
    if user_id is not None:
        stmt = stmt.where(Token.user_id == user_id)
    return session.execute(stmt).scalars().first()


def blacklist_token(raw_token: str, token_type: TokenType, session: Session) -> bool:
    """
    Moves an active stored token to the blacklisted state.

    Returns False when no active token matches (already blacklisted,
    consumed or never stored).
    """
    record = find_active_token(raw_token, token_type, session)
    if record is None:
        return False
    record.blacklisted = True
    session.flush()
    return True


def delete_tokens_for_user(user_id: int, token_type: TokenType, session: Session) -> int:
    """Deletes every stored token of `token_type` owned by the user. Returns the row count."""
    result = session.execute(
        delete(Token).where(
            Token.user_id == user_id,
            Token.type == token_type,
        )
    )
    session.flush()
    return result.rowcount


# ── Token pairs ────────────────────────────────────────────────────────────

def _token_entry(raw_token: str, expires: datetime) -> dict:
    return {"token": raw_token, "expires": expires.isoformat()}


def generate_auth_tokens(user_id: int, session: Session) -> dict:
    """
    Issues one access token (not stored) and one refresh token (stored, active).

    Returns: {"access": {"token", "expires"}, "refresh": {"token", "expires"}}
    """
    access_expires = _expires_in("JWT_ACCESS_TOKEN_EXPIRES")
    access_token = generate_token(user_id, access_expires, TokenType.ACCESS)

    refresh_expires = _expires_in("JWT_REFRESH_TOKEN_EXPIRES")
    refresh_token = generate_token(user_id, refresh_expires, TokenType.REFRESH)
    save_token(refresh_token, user_id, refresh_expires, TokenType.REFRESH, session)

    return {
        "access":  _token_entry(access_token, access_expires),
        "refresh": _token_entry(refresh_token, refresh_expires),
    }


def generate_reset_password_token(user_id: int, session: Session) -> str:
    """Issues and stores a single-use reset-password token."""
    expires = _expires_in("JWT_RESET_PASSWORD_TOKEN_EXPIRES")
    raw_token = generate_token(user_id, expires, TokenType.RESET_PASSWORD)
    save_token(raw_token, user_id, expires, TokenType.RESET_PASSWORD, session)
    return raw_token

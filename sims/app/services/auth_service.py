"""
services/auth_service.py - Authentication business logic.

Responsibilities:
  - Registration and credential validation
  - Token lifecycle: login, logout, refresh rotation
  - Password reset: issue a single-use token, consume it

Stored token states (refresh and reset-password):
  active ──logout / refresh / reset──▶ consumed (row deleted)
  active ──blacklist_token──────────▶ blacklisted
  Expiry is judged by signature verification, never by the stored row.

Error shapes are deliberately coarse:
  - login:   one INVALID_CREDENTIALS for unknown email and wrong password
  - refresh: one 401 for bad signature, missing, blacklisted or orphaned token
  - reset:   one 401 for bad signature, wrong type, missing token or user
  - logout:  404 when the token is missing or already blacklisted; a second
             logout with the same token is a 404, not a silent success

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP status codes beyond AppError
  - Commits are the route's responsibility - only flush here
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from sims.app.errors import AppError, ErrorCode
from sims.app.models.token import TokenType
from sims.app.models.user import User
from sims.app.services import email_service, token_service, user_service
from sims.app.services.token_service import TokenError

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _refresh_failed() -> AppError:
    return AppError(ErrorCode.TOKEN_INVALID, "Please authenticate", 401)


def _reset_failed() -> AppError:
    return AppError(ErrorCode.RESET_PASSWORD_FAILED, "Password reset failed", 401)


def _auth_response(user: User, session: Session) -> dict:
    return {
        "user": user_service.serialize_user(user),
        "tokens": token_service.generate_auth_tokens(user.id, session),
    }


# ── Public service functions ───────────────────────────────────────────────

def register_user(data: dict, session: Session) -> dict:
    """
    Creates a `user`-role account and logs it in.

    Raises:
      AppError(DUPLICATE_EMAIL, 400) - email already registered

    Returns: {"user": {...}, "tokens": {"access": {...}, "refresh": {...}}}
    """
    user = user_service.insert_user(
        first_name=data["first_name"],
        last_name=data["last_name"],
        email=data["email"],
        password=data["password"],
        tenant_id=data["tenant_id"],
        session=session,
    )
    return _auth_response(user, session)


def login_user(email: str, password: str, session: Session) -> dict:
    """
    Validates credentials and issues a new access + refresh token pair.

    Raises:
      AppError(INVALID_CREDENTIALS, 401) - email not found or password wrong.
      Uses the same error for both to avoid user enumeration.
    """
    user = user_service.get_user_by_email(email, session)

    if user is None or not user_service.password_matches(user, password):
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "Incorrect email or password",
            401,
        )

    logger.info("User %s logged in", user.id)
    return _auth_response(user, session)


def logout_user(raw_refresh_token: str, session: Session) -> None:
    """
    Consumes an active refresh token.

    Raises:
      AppError(TOKEN_NOT_FOUND, 404) - token not stored, already consumed
                                       or blacklisted.
    """
    record = token_service.find_active_token(raw_refresh_token, TokenType.REFRESH, session)
    if record is None:
        raise AppError(ErrorCode.TOKEN_NOT_FOUND, "Not found", 404)

    session.delete(record)
    session.flush()


def refresh_auth_tokens(raw_refresh_token: str, session: Session) -> dict:
    """
    Rotates a refresh token: the presented token is deleted and a new pair
    is issued, so each rotation chain has exactly one active refresh token.

    Raises:
      AppError(TOKEN_INVALID, 401) - bad signature/expiry/type, token not
                                     stored or blacklisted, or user deleted.

    Returns: {"access": {...}, "refresh": {...}}
    """
    claims = token_service.verify_token(raw_refresh_token, TokenType.REFRESH)
    if isinstance(claims, TokenError):
        raise _refresh_failed()

    record = token_service.find_active_token(
        raw_refresh_token,
        TokenType.REFRESH,
        session,
        user_id=claims.user_id,
    )
    if record is None:
        raise _refresh_failed()

    user = session.get(User, claims.user_id)
    if user is None:
        raise _refresh_failed()

    session.delete(record)
    session.flush()

    return token_service.generate_auth_tokens(user.id, session)


def forgot_password(email: str, session: Session) -> None:
    """
    Issues a reset-password token and hands it to the email service.
    Delivery failure is logged by the email service and not surfaced.

    Raises:
      AppError(USER_NOT_FOUND, 404) - no user with that email.
    """
    user = user_service.get_user_by_email(email, session)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            "No users found with this email",
            404,
        )

    reset_token = token_service.generate_reset_password_token(user.id, session)
    email_service.send_reset_password_email(user.email, reset_token)


def reset_password(raw_reset_token: str, new_password: str, session: Session) -> None:
    """
    Consumes a reset-password token and stores the new password.

    Every stored reset-password token for the user is deleted afterwards,
    so the presented token cannot be replayed and any other outstanding
    reset links stop working.

    Raises:
      AppError(RESET_PASSWORD_FAILED, 401) - for every failure mode.
    """
    claims = token_service.verify_token(raw_reset_token, TokenType.RESET_PASSWORD)
    if isinstance(claims, TokenError):
        raise _reset_failed()

    record = token_service.find_active_token(
        raw_reset_token,
        TokenType.RESET_PASSWORD,
        session,
        user_id=claims.user_id,
    )
    if record is None:
        raise _reset_failed()

    user = session.get(User, claims.user_id)
    if user is None:
        raise _reset_failed()

    user_service.set_password(user, new_password)
    token_service.delete_tokens_for_user(user.id, TokenType.RESET_PASSWORD, session)
    logger.info("Password reset for user %s", user.id)


def get_current_user(user: User) -> dict:
    """GET /auth/me - the user resolved by the auth middleware."""
    return user_service.serialize_user(user)

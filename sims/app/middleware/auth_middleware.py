"""
middleware/auth_middleware.py - JWT authentication and role-based authorization.

@require_auth(*permissions):
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Verifies signature, expiry and that the token is an ACCESS token
  3. Loads the user named by the token's sub claim
  4. Attaches the user to flask.g (g.user, g.user_id)
  5. If permissions were given, checks them against the role table in
     app.config["ROLE_PERMISSIONS"]

Authorization passes when the user's role grants every required permission,
or when the route's user_id path parameter equals the caller's own id
(self-service: a plain user may read, update or delete their own record).

Error codes:
  UNAUTHENTICATED (401) "Please authenticate" - every authentication failure
                  (missing header, malformed token, bad signature, expired,
                  wrong token type, user deleted) gets the same response.
  FORBIDDEN       (403) "Forbidden" - authenticated but not permitted.

Tenant-level rules (e.g. same-tenant school edits) live in the services.
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import current_app, g, request

from sims.app.errors import forbidden, unauthenticated
from sims.app.extensions import db
from sims.app.models.token import TokenType
from sims.app.models.user import User
from sims.app.services.token_service import TokenError, verify_token


def require_auth(*required_permissions: str) -> Callable:
    """
    Route decorator factory that enforces authentication and, optionally,
    permissions.

    Raises AppError for all failures - the global error handler converts
    these to the JSON envelope. Routes never catch AppError.

    Usage:
        @users_bp.route("/<int:user_id>", methods=["GET"])
        @require_auth(Permission.GET_USERS)
        def get_user(user_id: int):
            ...
    """
    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user = _authenticate_request()
            _authorize_request(user, required_permissions)
            return f(*args, **kwargs)

        return decorated

    return decorator


def _authenticate_request() -> User:
    """
    Performs the full JWT authentication sequence and sets flask.g.user.

    Separated from the decorator wrapper so tests can call it inside a
    test_request_context without a real view function.
    """
    auth_header = request.headers.get("Authorization", "")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise unauthenticated()

    claims = verify_token(parts[1], TokenType.ACCESS)
    if isinstance(claims, TokenError):
        raise unauthenticated()

    user = db.session.get(User, claims.user_id)
    if user is None:
        raise unauthenticated()

    g.user = user
    g.user_id = user.id
    return user


def _authorize_request(user: User, required_permissions: tuple[str, ...]) -> None:
    if not required_permissions:
        return

    role_permissions = current_app.config["ROLE_PERMISSIONS"]
    granted = role_permissions.get(user.role, frozenset())
    if granted.issuperset(required_permissions):
        return

    # Self-service bypass: acting on one's own user record.
    view_args = request.view_args or {}
    if "user_id" in view_args and str(view_args["user_id"]) == str(user.id):
        return

    raise forbidden()

"""
routes/auth.py - Authentication route handlers.

Layer rules:
  - Parse request body / query string
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Commit the DB session
  - Return the standard response envelope: {"data": {...}}

AppError propagates to the global error handler in app/__init__.py - routes
never catch it.

Endpoints (url_prefix=/api/v1/auth):
  POST   /register         → 201
  POST   /login            → 200
  POST   /logout           → 204
  POST   /refresh-tokens   → 200
  POST   /forgot-password  → 204
  POST   /reset-password   → 204  (?token=...)
  GET    /me               → 200
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from sims.app.extensions import db
from sims.app.middleware.auth_middleware import require_auth
from sims.app.schemas.auth_schema import (
    ForgotPasswordSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordQuerySchema,
    ResetPasswordSchema,
)
from sims.app.services import auth_service

auth_bp = Blueprint("auth", __name__)


def _json_body() -> dict:
    return request.get_json(force=True, silent=True) or {}


@auth_bp.route("/register", methods=["POST"])
def register():
    """POST /auth/register - Create a `user` account; return tokens."""
    data = RegisterSchema().load(_json_body())
    result = auth_service.register_user(data, session=db.session)
    db.session.commit()
    return jsonify({"data": result}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login - Authenticate; return tokens."""
    data = LoginSchema().load(_json_body())
    result = auth_service.login_user(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result}), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """POST /auth/logout - Consume the refresh token."""
    data = RefreshTokenSchema().load(_json_body())
    auth_service.logout_user(data["refresh_token"], session=db.session)
    db.session.commit()
    return "", 204


@auth_bp.route("/refresh-tokens", methods=["POST"])
def refresh_tokens():
    """POST /auth/refresh-tokens - Rotate the refresh token; return a new pair."""
    data = RefreshTokenSchema().load(_json_body())
    result = auth_service.refresh_auth_tokens(data["refresh_token"], session=db.session)
    db.session.commit()
    return jsonify({"data": result}), 200


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """POST /auth/forgot-password - Email a reset-password link."""
    data = ForgotPasswordSchema().load(_json_body())
    auth_service.forgot_password(data["email"], session=db.session)
    db.session.commit()
    return "", 204


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    """POST /auth/reset-password?token=... - Set a new password."""
    query = ResetPasswordQuerySchema().load(request.args.to_dict())
    data = ResetPasswordSchema().load(_json_body())
    auth_service.reset_password(query["token"], data["password"], session=db.session)
    db.session.commit()
    return "", 204


@auth_bp.route("/me", methods=["GET"])
@require_auth()
def me():
    """GET /auth/me - Return the authenticated user's profile."""
    result = auth_service.get_current_user(g.user)
    return jsonify({"data": result}), 200

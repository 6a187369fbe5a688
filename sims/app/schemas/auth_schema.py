"""
schemas/auth_schema.py - Marshmallow schemas for authentication endpoints.

Validation responsibility:
  - This file: field presence, types, formats, password strength.
  - services/auth_service.py: credential checks, token validity,
    DUPLICATE_EMAIL (cross-entity: requires a DB lookup).
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from sims.app.schemas.common import required_text, validate_password


class RegisterSchema(Schema):
    """
    POST /auth/register

    Field rules:
      first_name, last_name : non-blank, max 100 chars
      email                 : valid email format
      password              : min 8 chars, at least one letter and one digit
      tenant_id             : the school the account belongs to
    """

    first_name = required_text(100)
    last_name  = required_text(100)
    email      = fields.Email(required=True, validate=validate.Length(max=255))
    password   = fields.Str(required=True, load_only=True, validate=validate_password)
    tenant_id  = required_text(36)


class LoginSchema(Schema):
    """
    POST /auth/login

    Credential correctness is checked in auth_service.py
    (INVALID_CREDENTIALS, 401). No format rules here: a malformed email
    simply fails to match.
    """

    email    = fields.Str(required=True)
    password = fields.Str(required=True, load_only=True)


class RefreshTokenSchema(Schema):
    """
    POST /auth/logout and POST /auth/refresh-tokens

    Token validity (blacklisted, expired, not found) is checked in
    auth_service.py.
    """

    refresh_token = fields.Str(required=True)


class ForgotPasswordSchema(Schema):
    """POST /auth/forgot-password"""

    email = fields.Email(required=True)


class ResetPasswordQuerySchema(Schema):
    """POST /auth/reset-password?token=... (query string)"""

    token = fields.Str(required=True)


class ResetPasswordSchema(Schema):
    """POST /auth/reset-password (body)"""

    password = fields.Str(required=True, load_only=True, validate=validate_password)

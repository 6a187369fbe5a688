"""
schemas/user_schema.py - Marshmallow schemas for the /users endpoints.

Uniqueness of email is a DB concern and lives in services/user_service.py.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from sims.app.schemas.common import (
    PaginationQuerySchema,
    required_text,
    validate_non_empty_after_trim,
    validate_password,
)
from sims.config import ROLES


class CreateUserSchema(Schema):
    """POST /users - admin-driven user creation; role must be a known role."""

    first_name = required_text(100)
    last_name  = required_text(100)
    email      = fields.Email(required=True, validate=validate.Length(max=255))
    password   = fields.Str(required=True, load_only=True, validate=validate_password)
    role       = fields.Str(
        required=True,
        validate=validate.OneOf(ROLES, error="Role must be one of: {choices}."),
    )
    tenant_id  = required_text(36)


class UpdateUserSchema(Schema):
    """
    PATCH /users/:userId

    Every field is optional but at least one must be present.
    role and tenant_id are not editable through this endpoint.
    """

    first_name = fields.Str(validate=[validate.Length(min=1, max=100), validate_non_empty_after_trim])
    last_name  = fields.Str(validate=[validate.Length(min=1, max=100), validate_non_empty_after_trim])
    email      = fields.Email(validate=validate.Length(max=255))
    password   = fields.Str(load_only=True, validate=validate_password)

    @validates_schema
    def validate_not_empty(self, data: dict, **kwargs) -> None:
        if not data:
            raise ValidationError("At least one field must be provided.")


class UserQuerySchema(PaginationQuerySchema):
    """GET /users - exact-match filters plus pagination options."""

    first_name = fields.Str()
    last_name  = fields.Str()
    role       = fields.Str()
    tenant_id  = fields.Str()


USER_FILTER_FIELDS = ("first_name", "last_name", "role", "tenant_id")

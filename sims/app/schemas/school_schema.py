"""
schemas/school_schema.py - Marshmallow schemas for the /schools endpoints.

School registration also carries the credentials of the tenant's first
admin user (admin_* fields). tenant_id is never accepted from the client:
it is generated by school_service.create_school and immutable afterwards.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from sims.app.schemas.common import (
    PaginationQuerySchema,
    optional_text,
    required_text,
    validate_non_empty_after_trim,
    validate_password,
)


class CreateSchoolSchema(Schema):
    """POST /schools"""

    name    = required_text(200)
    email   = fields.Email(required=True, validate=validate.Length(max=255))
    address = required_text(500)
    phone   = required_text(50)

    pre_primary = optional_text(200)
    primary     = optional_text(200)
    secondary   = optional_text(200)

    # ── First admin account for the new tenant ─────────────────────────────
    admin_first_name = required_text(100)
    admin_last_name  = required_text(100)
    admin_email      = fields.Email(required=True, validate=validate.Length(max=255))
    admin_password   = fields.Str(required=True, load_only=True, validate=validate_password)


def _trimmed(max_length: int) -> fields.Str:
    return fields.Str(validate=[validate.Length(min=1, max=max_length), validate_non_empty_after_trim])


class UpdateSchoolSchema(Schema):
    """PATCH /schools/:id - at least one field; tenant_id is rejected as unknown."""

    name    = _trimmed(200)
    email   = fields.Email(validate=validate.Length(max=255))
    address = _trimmed(500)
    phone   = _trimmed(50)

    pre_primary = optional_text(200)
    primary     = optional_text(200)
    secondary   = optional_text(200)

    @validates_schema
    def validate_not_empty(self, data: dict, **kwargs) -> None:
        if not data:
            raise ValidationError("At least one field must be provided.")


class SchoolQuerySchema(PaginationQuerySchema):
    """GET /schools"""

    name  = fields.Str()
    email = fields.Str()


SCHOOL_FILTER_FIELDS = ("name", "email")

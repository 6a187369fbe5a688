"""
schemas/student_schema.py - Marshmallow schemas for the /students endpoints.

Whether tenant_id references an existing school, and whether the email is
already registered, are DB concerns checked in services/student_service.py.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from sims.app.schemas.common import (
    PaginationQuerySchema,
    optional_text,
    required_text,
    validate_non_empty_after_trim,
)


class CreateStudentSchema(Schema):
    """POST /students"""

    name     = required_text(200)
    guardian = optional_text(200)

    dob         = required_text(20)
    gender      = required_text(20)
    blood_group = optional_text(10)
    religion    = required_text(50)

    email   = fields.Email(required=True, validate=validate.Length(max=255))
    phone   = optional_text(50)
    address = required_text(500)
    state   = required_text(100)
    country = required_text(100)

    class_name = required_text(50)
    section    = required_text(50)
    group_name = optional_text(50)

    student_no = required_text(50)
    roll_no    = optional_text(50)
    picture    = optional_text(500)

    tenant_id = required_text(36)


class UpdateStudentSchema(Schema):
    """
    PATCH /students/:id

    Same fields as creation minus tenant_id, all optional, at least one
    required.
    """

    name     = fields.Str(validate=[validate.Length(min=1, max=200), validate_non_empty_after_trim])
    guardian = optional_text(200)

    dob         = fields.Str(validate=validate.Length(min=1, max=20))
    gender      = fields.Str(validate=validate.Length(min=1, max=20))
    blood_group = optional_text(10)
    religion    = fields.Str(validate=validate.Length(min=1, max=50))

    email   = fields.Email(validate=validate.Length(max=255))
    phone   = optional_text(50)
    address = fields.Str(validate=validate.Length(min=1, max=500))
    state   = fields.Str(validate=validate.Length(min=1, max=100))
    country = fields.Str(validate=validate.Length(min=1, max=100))

    class_name = fields.Str(validate=validate.Length(min=1, max=50))
    section    = fields.Str(validate=validate.Length(min=1, max=50))
    group_name = optional_text(50)

    student_no = fields.Str(validate=validate.Length(min=1, max=50))
    roll_no    = optional_text(50)
    picture    = optional_text(500)

    @validates_schema
    def validate_not_empty(self, data: dict, **kwargs) -> None:
        if not data:
            raise ValidationError("At least one field must be provided.")


class StudentQuerySchema(PaginationQuerySchema):
    """GET /students"""

    tenant_id  = fields.Str()
    class_name = fields.Str()
    section    = fields.Str()


STUDENT_FILTER_FIELDS = ("tenant_id", "class_name", "section")

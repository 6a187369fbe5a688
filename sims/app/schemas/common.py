"""
schemas/common.py - Validators and base schemas shared by every resource.

IMPORTANT: Inherits from marshmallow.Schema directly - never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate


def validate_password(value: str) -> None:
    """
    Password rule for every endpoint that accepts one:
    at least 8 characters, at least one letter and one digit.
    """
    if len(value) < 8:
        raise ValidationError("Password must be at least 8 characters long.")
    if not any(c.isalpha() for c in value):
        raise ValidationError("Password must contain at least one letter.")
    if not any(c.isdigit() for c in value):
        raise ValidationError("Password must contain at least one digit.")


def validate_non_empty_after_trim(value: str) -> None:
    """Rejects blank or whitespace-only strings."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def required_text(max_length: int) -> fields.Str:
    """A required, non-blank string field of at most `max_length` chars."""
    return fields.Str(
        required=True,
        validate=[
            validate.Length(min=1, max=max_length),
            validate_non_empty_after_trim,
        ],
    )


def optional_text(max_length: int) -> fields.Str:
    return fields.Str(
        allow_none=True,
        validate=validate.Length(max=max_length),
    )


class PaginationQuerySchema(Schema):
    """
    Query-string options understood by services/pagination.py.

    sort_by : "field:asc,other:desc" - field names are checked by the
              pagination engine against the model's sortable columns.
    limit   : page size; absent or non-positive → 10
    page    : 1-based page number; absent or non-positive → 1
    """

    sort_by = fields.Str()
    limit   = fields.Int()
    page    = fields.Int()

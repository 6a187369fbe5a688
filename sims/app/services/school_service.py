"""
services/school_service.py - School (tenant) registration and management.

School creation is two sequential writes: the school row, then its first
admin user scoped to the new tenant_id. If provisioning the admin fails,
the school row is deleted again before the error propagates. This is a
compensating action, not a transaction: a crash between the two writes
can still leave a school without an admin.

Invariants enforced here:
  - School email is unique (case-insensitive).
  - tenant_id is generated once (UUID4) and never accepted from clients.
  - Only an admin of the same tenant may update or delete a school.

Layer rules:
  - Commits are the route's responsibility - only flush here.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sims.app.errors import AppError, ErrorCode
from sims.app.models.school import School
from sims.app.models.user import User
from sims.app.services import email_service, user_service
from sims.app.services.pagination import paginate

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "name",
    "email",
    "address",
    "phone",
    "pre_primary",
    "primary",
    "secondary",
)


# ── Private helpers ────────────────────────────────────────────────────────

def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_school(school: School) -> dict:
    """Public projection of a School."""
    return {
        "id": school.id,
        "name": school.name,
        "email": school.email,
        "address": school.address,
        "phone": school.phone,
        "pre_primary": school.pre_primary,
        "primary": school.primary,
        "secondary": school.secondary,
        "tenant_id": school.tenant_id,
        "created_at": _iso(school.created_at),
        "updated_at": _iso(school.updated_at),
    }


def _school_not_found() -> AppError:
    return AppError(ErrorCode.SCHOOL_NOT_FOUND, "School not found", 404)


def _get_school_or_404(school_id: int, session: Session) -> School:
    school = session.get(School, school_id)
    if school is None:
        raise _school_not_found()
    return school


def _is_email_taken(email: str, session: Session, exclude_school_id: int | None = None) -> bool:
    stmt = select(School.id).where(School.email == user_service.normalize_email(email))
    if exclude_school_id is not None:
        stmt = stmt.where(School.id != exclude_school_id)
    return session.execute(stmt).first() is not None


def _require_same_tenant(school: School, caller: User) -> None:
    user_service.require_same_tenant(school.tenant_id, caller)


# ── Public service functions ───────────────────────────────────────────────

def school_exists(tenant_id: str, session: Session) -> bool:
    return session.execute(
        select(School.id).where(School.tenant_id == tenant_id)
    ).first() is not None


def create_school(data: dict, session: Session) -> dict:
    """
    Registers a school and provisions its first admin user.

    Raises:
      AppError(DUPLICATE_EMAIL, 400) - school email or admin email taken
      AppError(INTERNAL_ERROR, 500)  - database failure while provisioning
                                       the admin

    Returns: {"school": {...}, "admin": {...}}
    """
    if _is_email_taken(data["email"], session):
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            "School email is already taken",
            400,
            field="email",
        )

    school = School(
        name=data["name"].strip(),
        email=user_service.normalize_email(data["email"]),
        address=data["address"].strip(),
        phone=data["phone"].strip(),
        pre_primary=user_service.strip_text(data.get("pre_primary")),
        primary=user_service.strip_text(data.get("primary")),
        secondary=user_service.strip_text(data.get("secondary")),
        tenant_id=str(uuid.uuid4()),
    )
    session.add(school)
    session.flush()

    try:
        admin = user_service.insert_user(
            first_name=data["admin_first_name"],
            last_name=data["admin_last_name"],
            email=data["admin_email"],
            password=data["admin_password"],
            tenant_id=school.tenant_id,
            role="admin",
            session=session,
        )
    except AppError as exc:
        logger.warning(
            "Admin provisioning failed for school %s (%s); removing school",
            school.id,
            exc.code,
        )
        session.delete(school)
        session.flush()
        if exc.code == ErrorCode.DUPLICATE_EMAIL:
            exc.field = "admin_email"
        raise
    except SQLAlchemyError as exc:
        logger.error("Database error provisioning admin for school %s: %s", school.id, exc)
        session.rollback()
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            "Error creating school",
            500,
        ) from exc

    email_service.send_school_welcome_email(admin.email, school.name)
    logger.info("School %s created with tenant %s", school.id, school.tenant_id)

    return {
        "school": serialize_school(school),
        "admin": user_service.serialize_user(admin),
    }


def query_schools(filters: dict, options: dict, session: Session) -> dict:
    page = paginate(
        session,
        School,
        filters=filters,
        options=options,
        projector=serialize_school,
    )
    return page.to_dict()


def get_school(school_id: int, session: Session) -> dict:
    return serialize_school(_get_school_or_404(school_id, session))


def get_school_by_tenant_id(tenant_id: str, session: Session) -> dict:
    school = session.execute(
        select(School).where(School.tenant_id == tenant_id)
    ).scalar_one_or_none()
    if school is None:
        raise _school_not_found()
    return serialize_school(school)


def get_school_by_email(email: str, session: Session) -> dict:
    school = session.execute(
        select(School).where(School.email == user_service.normalize_email(email))
    ).scalar_one_or_none()
    if school is None:
        raise _school_not_found()
    return serialize_school(school)


def update_school(school_id: int, data: dict, caller: User, session: Session) -> dict:
    """
    PATCH /schools/:id - caller must be an admin of this tenant.

    Raises:
      AppError(SCHOOL_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)       - caller belongs to another tenant
      AppError(DUPLICATE_EMAIL, 400)
    """
    school = _get_school_or_404(school_id, session)
    _require_same_tenant(school, caller)

    if "email" in data:
        if _is_email_taken(data["email"], session, exclude_school_id=school.id):
            raise AppError(
                ErrorCode.DUPLICATE_EMAIL,
                "Email already taken",
                400,
                field="email",
            )
        data = {**data, "email": user_service.normalize_email(data["email"])}

    for name in _EDITABLE_FIELDS:
        if name in data:
            setattr(school, name, user_service.strip_text(data[name]))

    session.flush()
    return serialize_school(school)


def delete_school(school_id: int, caller: User, session: Session) -> None:
    school = _get_school_or_404(school_id, session)
    _require_same_tenant(school, caller)
    session.delete(school)
    session.flush()
    logger.info("School %s deleted", school_id)

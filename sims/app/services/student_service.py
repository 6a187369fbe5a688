"""
services/student_service.py - Student records scoped to a tenant.

Invariants enforced here:
  - Student email is unique (case-insensitive).
  - tenant_id must reference an existing school at creation time. This is a
    check-then-act lookup, not a foreign key.
  - tenant_id never changes after creation.
  - Callers read and write only students of their own tenant.
  - Text fields are stored trimmed.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from sims.app.errors import AppError, ErrorCode
from sims.app.models.student import Student
from sims.app.models.user import User
from sims.app.services import school_service, user_service
from sims.app.services.pagination import paginate

logger = logging.getLogger(__name__)

_FIELDS = (
    "name",
    "guardian",
    "dob",
    "gender",
    "blood_group",
    "religion",
    "email",
    "phone",
    "address",
    "state",
    "country",
    "class_name",
    "section",
    "group_name",
    "student_no",
    "roll_no",
    "picture",
)


def serialize_student(student: Student) -> dict:
    result = {name: getattr(student, name) for name in _FIELDS}
    result["id"] = student.id
    result["tenant_id"] = student.tenant_id
    result["created_at"] = student.created_at.isoformat() if student.created_at else None
    result["updated_at"] = student.updated_at.isoformat() if student.updated_at else None
    return result


def _get_student_or_404(student_id: int, session: Session) -> Student:
    student = session.get(Student, student_id)
    if student is None:
        raise AppError(ErrorCode.STUDENT_NOT_FOUND, "Student not found", 404)
    return student


def _is_email_taken(email: str, session: Session, exclude_student_id: int | None = None) -> bool:
    stmt = select(Student.id).where(Student.email == user_service.normalize_email(email))
    if exclude_student_id is not None:
        stmt = stmt.where(Student.id != exclude_student_id)
    return session.execute(stmt).first() is not None


def create_student(data: dict, caller: User, session: Session) -> dict:
    """
    Raises:
      AppError(SCHOOL_NOT_FOUND, 404) - tenant_id matches no school
      AppError(FORBIDDEN, 403)        - tenant_id is not the caller's tenant
      AppError(DUPLICATE_EMAIL, 400)
    """
    tenant_id = data["tenant_id"].strip()
    if not school_service.school_exists(tenant_id, session):
        raise AppError(
            ErrorCode.SCHOOL_NOT_FOUND,
            "School not found",
            404,
            field="tenant_id",
        )
    user_service.require_same_tenant(tenant_id, caller)
    if _is_email_taken(data["email"], session):
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            "Student with same email is already registered",
            400,
            field="email",
        )

    student = Student(
        **{name: user_service.strip_text(data[name]) for name in _FIELDS if name in data},
        tenant_id=tenant_id,
    )
    student.email = user_service.normalize_email(student.email)
    session.add(student)
    session.flush()

    logger.info("Student %s created for tenant %s", student.id, student.tenant_id)
    return serialize_student(student)


def query_students(filters: dict, options: dict, caller: User, session: Session) -> dict:
    page = paginate(
        session,
        Student,
        filters=user_service.scope_filters_to_tenant(filters, caller),
        options=options,
        projector=serialize_student,
    )
    return page.to_dict()


def _get_tenant_student(student_id: int, caller: User, session: Session) -> Student:
    student = _get_student_or_404(student_id, session)
    user_service.require_same_tenant(student.tenant_id, caller)
    return student


def get_student(student_id: int, caller: User, session: Session) -> dict:
    return serialize_student(_get_tenant_student(student_id, caller, session))


def update_student(student_id: int, data: dict, caller: User, session: Session) -> dict:
    """
    Raises:
      AppError(STUDENT_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)       - student belongs to another tenant
      AppError(DUPLICATE_EMAIL, 400)
    """
    student = _get_tenant_student(student_id, caller, session)

    if "email" in data:
        if _is_email_taken(data["email"], session, exclude_student_id=student.id):
            raise AppError(
                ErrorCode.DUPLICATE_EMAIL,
                "Email already taken",
                400,
                field="email",
            )
        data = {**data, "email": user_service.normalize_email(data["email"])}

    for name in _FIELDS:
        if name in data:
            setattr(student, name, user_service.strip_text(data[name]))

    session.flush()
    return serialize_student(student)

"""
models/student.py - Student table definition.

tenant_id links back to School.tenant_id. Existence of the school is checked
by student_service before insert; it is not a database constraint.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from sims.app.extensions import db


class Student(db.Model):
    __tablename__ = "students"

    __table_args__ = (
        CheckConstraint(
            "email LIKE '%@%'",
            name="ck_students_email_format",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name:     Mapped[str] = mapped_column(String(200), nullable=False)
    guardian: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # ── Demographics ───────────────────────────────────────────────────────
    dob:         Mapped[str] = mapped_column(String(20), nullable=False)
    gender:      Mapped[str] = mapped_column(String(20), nullable=False)
    blood_group: Mapped[str | None] = mapped_column(String(10), nullable=True)
    religion:    Mapped[str] = mapped_column(String(50), nullable=False)

    # ── Contact ────────────────────────────────────────────────────────────
    email:   Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone:   Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    state:   Mapped[str] = mapped_column(String(100), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)

    # ── Academic placement ─────────────────────────────────────────────────
    class_name: Mapped[str] = mapped_column(String(50), nullable=False)
    section:    Mapped[str] = mapped_column(String(50), nullable=False)
    group_name: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # ── School-assigned numbers ────────────────────────────────────────────
    student_no: Mapped[str] = mapped_column(String(50), nullable=False)
    roll_no:    Mapped[str | None] = mapped_column(String(50), nullable=True)

    picture: Mapped[str | None] = mapped_column(String(500), nullable=True)

    tenant_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Student id={self.id} student_no={self.student_no!r}>"

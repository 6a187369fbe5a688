"""
models/school.py - School (tenant) table definition.

tenant_id is generated once at creation (UUID4 string) and never updated.
Users and Students reference it by value, not by foreign key, so a tenant's
records survive independently of the school row.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from sims.app.extensions import db


class School(db.Model):
    __tablename__ = "schools"

    __table_args__ = (
        CheckConstraint(
            "email LIKE '%@%'",
            name="ck_schools_email_format",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name:    Mapped[str] = mapped_column(String(200), nullable=False)
    email:   Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    phone:   Mapped[str] = mapped_column(String(50), nullable=False)

    # Optional tier offerings, free text (e.g. "Nursery 1-3").
    pre_primary: Mapped[str | None] = mapped_column(String(200), nullable=True)
    primary:     Mapped[str | None] = mapped_column(String(200), nullable=True)
    secondary:   Mapped[str | None] = mapped_column(String(200), nullable=True)

    tenant_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        unique=True,
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
        return f"<School id={self.id} tenant_id={self.tenant_id!r}>"

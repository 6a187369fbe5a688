"""
models/token.py - Token table definition.

Only refresh and reset-password tokens are persisted. Access tokens are
verified by signature and expiry alone and never reach this table.

Row states:
  active       blacklisted = FALSE
  blacklisted  blacklisted = TRUE (explicit revoke)
  consumed     row deleted (logout, refresh rotation, password reset)

FK policy: user_id ON DELETE CASCADE - token is owned by the user.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sims.app.extensions import db


class TokenType(str, enum.Enum):
    ACCESS         = "access"
    REFRESH        = "refresh"
    RESET_PASSWORD = "resetPassword"


class Token(db.Model):
    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(primary_key=True)

    # The raw signed JWT. Looked up by exact string match.
    token: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type: Mapped[TokenType] = mapped_column(
        Enum(
            TokenType,
            name="token_type_enum",
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
            length=20,
        ),
        nullable=False,
    )

    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    blacklisted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
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

    # ── Relationships ──────────────────────────────────────────────────────

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="tokens",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Token id={self.id} "
            f"user_id={self.user_id} "
            f"type={self.type.value} "
            f"blacklisted={self.blacklisted}>"
        )

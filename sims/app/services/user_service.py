"""
services/user_service.py - User accounts: creation, lookup, update, delete.

Invariants enforced here:
  - An admin acts only on users of their own tenant. A user acting on
    their own record is in that tenant by construction.
  - Email is unique (case-insensitive). Checked before insert and update;
    this is a check-then-act race that the UNIQUE constraint backs up.
  - Passwords are stored as bcrypt hashes and rehashed only when the
    plaintext actually changes.
  - password_hash never leaves this module in a response dict.

Layer rules:
  - No use of flask.request, flask.g, or HTTP routing.
  - current_app.config is read only for BCRYPT_LOG_ROUNDS.
  - Commits are the route's responsibility - only flush here.
"""

from __future__ import annotations

import logging

import bcrypt
from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from sims.app.errors import AppError, ErrorCode, forbidden
from sims.app.models.user import User
from sims.app.services.pagination import paginate

logger = logging.getLogger(__name__)

# Columns usable in GET /users filters and sort_by. password_hash is excluded.
USER_SORTABLE_FIELDS = (
    "id",
    "first_name",
    "last_name",
    "email",
    "role",
    "tenant_id",
    "created_at",
    "updated_at",
)


# ── Passwords ──────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def password_matches(user: User, password: str) -> bool:
    """Constant-time bcrypt comparison."""
    return bcrypt.checkpw(
        password.encode("utf-8"),
        user.password_hash.encode("utf-8"),
    )


def set_password(user: User, password: str) -> bool:
    """
    Stores `password` on the user, rehashing only if it differs from the
    current one. Returns True if the hash changed.
    """
    if user.password_hash and password_matches(user, password):
        return False
    user.password_hash = hash_password(password)
    return True


# ── Serialisation ──────────────────────────────────────────────────────────

def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_user(user: User) -> dict:
    """Public projection of a User. No password, no internal fields."""
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role,
        "tenant_id": user.tenant_id,
        "created_at": _iso(user.created_at),
        "updated_at": _iso(user.updated_at),
    }


# ── Lookups ────────────────────────────────────────────────────────────────

def normalize_email(email: str) -> str:
    return email.strip().lower()


def strip_text(value):
    """Trims strings; None and non-string values pass through."""
    return value.strip() if isinstance(value, str) else value


def get_user_by_email(email: str, session: Session) -> User | None:
    return session.execute(
        select(User).where(User.email == normalize_email(email))
    ).scalar_one_or_none()


def is_email_taken(
        email: str,
        session: Session,
        exclude_user_id: int | None = None,
) -> bool:
    stmt = select(User.id).where(User.email == normalize_email(email))
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return session.execute(stmt).first() is not None


def get_user_or_404(user_id: int, session: Session) -> User:
    """Returns the User or raises USER_NOT_FOUND (404)."""
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            "User not found",
            404,
        )
    return user


def require_same_tenant(tenant_id: str, caller: User) -> None:
    """Raises FORBIDDEN (403) when `tenant_id` is not the caller's tenant."""
    if caller.tenant_id != tenant_id:
        raise forbidden()


def scope_filters_to_tenant(filters: dict, caller: User) -> dict:
    """
    Pins a list query to the caller's tenant. An explicit tenant_id filter
    naming another tenant is FORBIDDEN rather than silently replaced.
    """
    if "tenant_id" in filters:
        require_same_tenant(filters["tenant_id"], caller)
    return {**filters, "tenant_id": caller.tenant_id}


def _raise_duplicate_email(field: str = "email") -> None:
    raise AppError(
        ErrorCode.DUPLICATE_EMAIL,
        "Email already taken",
        400,
        field=field,
    )


# ── Public service functions ───────────────────────────────────────────────

def insert_user(
        *,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        tenant_id: str,
        session: Session,
        role: str = "user",
) -> User:
    """
    Creates a user row and returns the model. Used by registration, the
    admin /users endpoint and school provisioning.

    Raises:
      AppError(DUPLICATE_EMAIL, 400) - email already registered
    """
    if is_email_taken(email, session):
        _raise_duplicate_email()

    user = User(
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=normalize_email(email),
        role=role,
        tenant_id=tenant_id.strip(),
    )
    set_password(user, password)
    session.add(user)
    session.flush()  # populate user.id

    logger.info("User %s created (role=%s, tenant=%s)", user.id, user.role, user.tenant_id)
    return user


def create_user(data: dict, caller: User, session: Session) -> dict:
    """
    POST /users - admin-driven creation with an explicit role.

    Raises:
      AppError(FORBIDDEN, 403)       - tenant_id is not the caller's tenant
      AppError(DUPLICATE_EMAIL, 400)
    """
    require_same_tenant(data["tenant_id"].strip(), caller)
    user = insert_user(
        first_name=data["first_name"],
        last_name=data["last_name"],
        email=data["email"],
        password=data["password"],
        tenant_id=data["tenant_id"],
        role=data["role"],
        session=session,
    )
    return serialize_user(user)


def query_users(filters: dict, options: dict, caller: User, session: Session) -> dict:
    """GET /users - paginated envelope of the caller's tenant."""
    page = paginate(
        session,
        User,
        filters=scope_filters_to_tenant(filters, caller),
        options=options,
        projector=serialize_user,
        sortable=USER_SORTABLE_FIELDS,
    )
    return page.to_dict()


def _get_tenant_user(user_id: int, caller: User, session: Session) -> User:
    user = get_user_or_404(user_id, session)
    require_same_tenant(user.tenant_id, caller)
    return user


def get_user(user_id: int, caller: User, session: Session) -> dict:
    return serialize_user(_get_tenant_user(user_id, caller, session))


def update_user(user_id: int, data: dict, caller: User, session: Session) -> dict:
    """
    PATCH /users/:userId

    Raises:
      AppError(USER_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)       - user belongs to another tenant
      AppError(DUPLICATE_EMAIL, 400) - email belongs to another user
    """
    user = _get_tenant_user(user_id, caller, session)

    if "email" in data:
        if is_email_taken(data["email"], session, exclude_user_id=user.id):
            _raise_duplicate_email()
        user.email = normalize_email(data["email"])

    for name in ("first_name", "last_name"):
        if name in data:
            setattr(user, name, data[name].strip())

    if "password" in data:
        set_password(user, data["password"])

    session.flush()
    return serialize_user(user)


def delete_user(user_id: int, caller: User, session: Session) -> None:
    """DELETE /users/:userId - stored tokens go with the user (ORM cascade)."""
    user = _get_tenant_user(user_id, caller, session)
    session.delete(user)
    session.flush()
    logger.info("User %s deleted by %s", user_id, caller.id)

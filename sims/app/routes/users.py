"""
routes/users.py - User account route handlers.

Endpoints (url_prefix=/api/v1/users):
  POST   /               → 201  manageUsers
  GET    /               → 200  getUsers (paginated)
  GET    /:userId        → 200  getUsers, or the user themself
  PATCH  /:userId        → 200  manageUsers, or the user themself
  DELETE /:userId        → 204  manageUsers, or the user themself

Every endpoint is scoped to the caller's tenant: other tenants' users are
FORBIDDEN (403) and GET / lists only the caller's tenant.
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from sims.app.extensions import db
from sims.app.middleware.auth_middleware import require_auth
from sims.app.schemas.user_schema import (
    USER_FILTER_FIELDS,
    CreateUserSchema,
    UpdateUserSchema,
    UserQuerySchema,
)
from sims.app.services import user_service
from sims.app.services.pagination import pick
from sims.config import Permission

users_bp = Blueprint("users", __name__)


@users_bp.route("/", methods=["POST"])
@require_auth(Permission.MANAGE_USERS)
def create_user():
    data = CreateUserSchema().load(request.get_json(force=True, silent=True) or {})
    result = user_service.create_user(data, caller=g.user, session=db.session)
    db.session.commit()
    return jsonify({"data": result}), 201


@users_bp.route("/", methods=["GET"])
@require_auth(Permission.GET_USERS)
def list_users():
    query = UserQuerySchema().load(request.args.to_dict())
    result = user_service.query_users(
        filters=pick(query, USER_FILTER_FIELDS),
        options=pick(query, ("sort_by", "limit", "page")),
        caller=g.user,
        session=db.session,
    )
    return jsonify({"data": result}), 200


@users_bp.route("/<int:user_id>", methods=["GET"])
@require_auth(Permission.GET_USERS)
def get_user(user_id: int):
    result = user_service.get_user(user_id, caller=g.user, session=db.session)
    return jsonify({"data": result}), 200


@users_bp.route("/<int:user_id>", methods=["PATCH"])
@require_auth(Permission.MANAGE_USERS)
def update_user(user_id: int):
    data = UpdateUserSchema().load(request.get_json(force=True, silent=True) or {})
    result = user_service.update_user(user_id, data, caller=g.user, session=db.session)
    db.session.commit()
    return jsonify({"data": result}), 200


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@require_auth(Permission.MANAGE_USERS)
def delete_user(user_id: int):
    user_service.delete_user(user_id, caller=g.user, session=db.session)
    db.session.commit()
    return "", 204

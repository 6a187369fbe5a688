"""
routes/schools.py - School (tenant) route handlers.

Endpoints (url_prefix=/api/v1/schools):
  POST   /                    → 201  public: registers school + first admin
  GET    /                    → 200  public, paginated
  GET    /:id                 → 200  public
  GET    /tenant/:tenantId    → 200  authenticated
  GET    /email/:email        → 200  authenticated
  PATCH  /:id                 → 200  manageSchool, same tenant
  DELETE /:id                 → 204  manageSchool, same tenant
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from sims.app.extensions import db
from sims.app.middleware.auth_middleware import require_auth
from sims.app.schemas.school_schema import (
    SCHOOL_FILTER_FIELDS,
    CreateSchoolSchema,
    SchoolQuerySchema,
    UpdateSchoolSchema,
)
from sims.app.services import school_service
from sims.app.services.pagination import pick
from sims.config import Permission

schools_bp = Blueprint("schools", __name__)


@schools_bp.route("/", methods=["POST"])
def create_school():
    """POST /schools - Register a school; its first admin is created alongside."""
    data = CreateSchoolSchema().load(request.get_json(force=True, silent=True) or {})
    result = school_service.create_school(data, session=db.session)
    db.session.commit()
    return jsonify({"data": result}), 201


@schools_bp.route("/", methods=["GET"])
def list_schools():
    query = SchoolQuerySchema().load(request.args.to_dict())
    result = school_service.query_schools(
        filters=pick(query, SCHOOL_FILTER_FIELDS),
        options=pick(query, ("sort_by", "limit", "page")),
        session=db.session,
    )
    return jsonify({"data": result}), 200


@schools_bp.route("/<int:school_id>", methods=["GET"])
def get_school(school_id: int):
    result = school_service.get_school(school_id, session=db.session)
    return jsonify({"data": result}), 200


@schools_bp.route("/tenant/<string:tenant_id>", methods=["GET"])
@require_auth()
def get_school_by_tenant(tenant_id: str):
    result = school_service.get_school_by_tenant_id(tenant_id, session=db.session)
    return jsonify({"data": result}), 200


@schools_bp.route("/email/<string:email>", methods=["GET"])
@require_auth()
def get_school_by_email(email: str):
    result = school_service.get_school_by_email(email, session=db.session)
    return jsonify({"data": result}), 200


@schools_bp.route("/<int:school_id>", methods=["PATCH"])
@require_auth(Permission.MANAGE_SCHOOL)
def update_school(school_id: int):
    data = UpdateSchoolSchema().load(request.get_json(force=True, silent=True) or {})
    result = school_service.update_school(school_id, data, caller=g.user, session=db.session)
    db.session.commit()
    return jsonify({"data": result}), 200


@schools_bp.route("/<int:school_id>", methods=["DELETE"])
@require_auth(Permission.MANAGE_SCHOOL)
def delete_school(school_id: int):
    school_service.delete_school(school_id, caller=g.user, session=db.session)
    db.session.commit()
    return "", 204

"""
routes/students.py - Student record route handlers.

Endpoints (url_prefix=/api/v1/students):
  POST   /        → 201  manageStudents
  GET    /        → 200  getStudents (paginated; caller's tenant only)
  GET    /:id     → 200  getStudents
  PATCH  /:id     → 200  manageStudents
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from sims.app.extensions import db
from sims.app.middleware.auth_middleware import require_auth
from sims.app.schemas.student_schema import (
    STUDENT_FILTER_FIELDS,
    CreateStudentSchema,
    StudentQuerySchema,
    UpdateStudentSchema,
)
from sims.app.services import student_service
from sims.app.services.pagination import pick
from sims.config import Permission

students_bp = Blueprint("students", __name__)


@students_bp.route("/", methods=["POST"])
@require_auth(Permission.MANAGE_STUDENTS)
def create_student():
    data = CreateStudentSchema().load(request.get_json(force=True, silent=True) or {})
    result = student_service.create_student(data, caller=g.user, session=db.session)
    db.session.commit()
    return jsonify({"data": result}), 201


@students_bp.route("/", methods=["GET"])
@require_auth(Permission.GET_STUDENTS)
def list_students():
    query = StudentQuerySchema().load(request.args.to_dict())
    result = student_service.query_students(
        filters=pick(query, STUDENT_FILTER_FIELDS),
        options=pick(query, ("sort_by", "limit", "page")),
        caller=g.user,
        session=db.session,
    )
    return jsonify({"data": result}), 200


@students_bp.route("/<int:student_id>", methods=["GET"])
@require_auth(Permission.GET_STUDENTS)
def get_student(student_id: int):
    result = student_service.get_student(student_id, caller=g.user, session=db.session)
    return jsonify({"data": result}), 200


@students_bp.route("/<int:student_id>", methods=["PATCH"])
@require_auth(Permission.MANAGE_STUDENTS)
def update_student(student_id: int):
    data = UpdateStudentSchema().load(request.get_json(force=True, silent=True) or {})
    result = student_service.update_student(student_id, data, caller=g.user, session=db.session)
    db.session.commit()
    return jsonify({"data": result}), 200

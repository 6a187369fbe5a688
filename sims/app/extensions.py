"""
extensions.py - Flask extension singletons.

Initialises SQLAlchemy and marshmallow as module-level objects so they can be
imported anywhere without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` or `ma` from here wherever needed.

    from sims.app.extensions import db, ma
"""

from flask_sqlalchemy import SQLAlchemy
from flask_marshmallow import Marshmallow

db = SQLAlchemy()

# IMPORTANT - schema inheritance rule:
#   All Schema classes (in app/schemas/) inherit from marshmallow.Schema
#   directly, NOT from ma.Schema. ma.Schema requires an active Flask
#   application context and unit tests in tests/unit/ run without one.
ma = Marshmallow()

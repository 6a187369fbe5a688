"""
sims/wsgi.py - WSGI entry point.

    gunicorn "sims.wsgi:app"
    flask --app sims.wsgi run
"""

import os

from sims.app import create_app

app = create_app(os.getenv("FLASK_ENV", "development"))

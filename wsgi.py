"""
Waitress WSGI entry point for production deployment.

Usage::

    python wsgi.py

Pending database migrations are applied before the server starts; if
a migration fails the process exits without serving.

Waitress is a pure-Python WSGI server that runs on Windows and Linux
without requiring C compilation.
"""

import logging
import os

from flask_migrate import upgrade
from waitress import serve

from loanerdesk import create_app

# Force production config when running via this entry point.
app = create_app(os.environ.get("FLASK_ENV", "production"))

if __name__ == "__main__":
    with app.app_context():
        upgrade()

    host = os.environ.get("WAITRESS_HOST", "127.0.0.1")
    port = int(os.environ.get("WAITRESS_PORT", "8080"))
    logging.getLogger(__name__).info("Starting Waitress on %s:%d", host, port)
    serve(app, host=host, port=port)

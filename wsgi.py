"""
Flask-Migrate / Alembic entry point.

Usage:
    flask db init       # first time only (creates migrations/)
    flask db migrate -m "description"
    flask db upgrade
    flask create-admin admin@studiohq.com "Studio Admin"
"""

from studio import create_app

app = create_app()

"""
Studio Management System
Shared SQLAlchemy handle.

Every model module does ``from studio.models import db`` and registers its
tables on this single metadata object.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

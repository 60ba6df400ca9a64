"""
Action Item Lifecycle Service
Shared Flask-SQLAlchemy handle.

Usage:
    from taskhub.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

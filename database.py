"""
Database configuration and initialization for Escola Gestão
"""

import logging
import sqlite3
from functools import wraps

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import validates

logger = logging.getLogger(__name__)

# Initialize SQLAlchemy instance
db = SQLAlchemy()

@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite"""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

def fold_name(name):
    """Case-folded form of a name, used for case-insensitive lookups"""
    return (name or '').strip().casefold()

class NameKeyMixin:
    """Keeps a case-folded copy of ``name`` in ``name_key``

    SQLite lower() only folds ASCII, so lookups compare ``name_key`` instead.
    """
    name_key = db.Column(db.String(100), nullable=False, index=True)

    @validates('name')
    def _sync_name_key(self, key, value):
        self.name_key = fold_name(value)
        return value

def init_db(app):
    """Initialize database with application context"""
    with app.app_context():
        # Import all models to ensure they are registered
        import models  # noqa: F401

        # Create all tables
        db.create_all()

        # Create default super admin if configured
        create_default_super_admin(app)

        logger.info("Database initialized successfully")

def create_default_super_admin(app):
    """Create the platform super admin from environment settings"""
    import os
    from models.user import User

    email = os.environ.get('SUPER_ADMIN_EMAIL')
    password = os.environ.get('SUPER_ADMIN_PASSWORD')
    if not email or not password:
        return

    existing_user = User.query.filter_by(email=email.lower()).first()
    if existing_user:
        return

    user = User(email=email.lower(), full_name='Super Admin', role=User.ROLE_SUPER_ADMIN)
    user.set_password(password)
    try:
        db.session.add(user)
        db.session.commit()
        logger.info("Default super admin created: %s", email)
    except Exception as e:
        db.session.rollback()
        logger.error("Error creating default super admin: %s", e)

def reset_database(app):
    """Reset database - WARNING: This will delete all data"""
    with app.app_context():
        import models  # noqa: F401
        db.drop_all()
        db.create_all()
        create_default_super_admin(app)
        logger.warning("Database reset completed")

class DatabaseError(Exception):
    """Custom exception for database operations"""
    pass

class ValidationError(Exception):
    """Raised by services when input is rejected before touching the database"""
    pass

def handle_db_error(func):
    """Decorator to handle database errors gracefully"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            db.session.rollback()
            raise DatabaseError(f"Database operation failed: {str(e)}") from e
    return wrapper

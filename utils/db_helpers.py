"""
Database helper utilities for Escola Gestão
"""

import logging
from contextlib import contextmanager

from database import db, handle_db_error
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

@handle_db_error
def safe_add_and_commit(obj):
    """Safely add object to database with error handling"""
    try:
        db.session.add(obj)
        db.session.commit()
        return True, "Record added successfully"
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("Integrity error adding %r: %s", obj, e)
        if 'UNIQUE constraint failed' in str(e) or 'duplicate key' in str(e):
            return False, "Record with this identifier already exists"
        return False, "Database constraint violation"

@handle_db_error
def safe_delete_and_commit(obj):
    """Safely delete object from database with error handling"""
    db.session.delete(obj)
    db.session.commit()
    return True, "Record deleted successfully"

@handle_db_error
def safe_update_and_commit():
    """Safely commit database changes with error handling"""
    try:
        db.session.commit()
        return True, "Records updated successfully"
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("Integrity error on update: %s", e)
        if 'UNIQUE constraint failed' in str(e) or 'duplicate key' in str(e):
            return False, "Duplicate entry found"
        return False, "Database constraint violation"

@contextmanager
def atomic():
    """Commit everything done in the block at once, or roll all of it back"""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

def get_for_tenant(model, tenant_id, record_id):
    """Fetch a tenant-owned record by id, None when missing or owned by another tenant"""
    if record_id is None:
        return None
    obj = db.session.get(model, record_id)
    if obj is None or obj.tenant_id != tenant_id:
        return None
    return obj

def paginate_query(query, page=1, per_page=20):
    """Paginate query results into a plain dict"""
    pagination = query.paginate(page=page, per_page=per_page, error_out=False)
    return {
        'items': pagination.items,
        'page': pagination.page,
        'pages': pagination.pages,
        'total': pagination.total,
        'has_prev': pagination.has_prev,
        'has_next': pagination.has_next,
    }

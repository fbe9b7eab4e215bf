"""
Tenant service for Escola Gestão
School account registration, trial countdown and status management
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import func

from database import db
from models.tenant import Tenant
from models.user import User
from models.student import Student
from utils.validators import validate_name, validate_email, validate_password

logger = logging.getLogger(__name__)

def _plural(value, singular, plural):
    return f"{value} {singular if value == 1 else plural}"

def format_time_remaining(total_seconds):
    """Portuguese "em N <unit>" string using the largest whole unit"""
    if total_seconds <= 0:
        return 'Expirado'
    days, rest = divmod(total_seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    if days:
        return 'em ' + _plural(days, 'dia', 'dias')
    if hours:
        return 'em ' + _plural(hours, 'hora', 'horas')
    if minutes:
        return 'em ' + _plural(minutes, 'minuto', 'minutos')
    return 'em ' + _plural(seconds, 'segundo', 'segundos')

def trial_countdown(tenant, now=None):
    """Countdown to the end of a tenant's trial"""
    now = now or datetime.utcnow()

    if tenant is None or not tenant.is_trialing:
        return {
            'days': 0, 'hours': 0, 'minutes': 0, 'seconds': 0,
            'is_expired': False, 'is_trialing': False,
            'expires_at': None, 'time_remaining': ''
        }

    expires_at = tenant.trial_expires_at
    remaining = int((expires_at - now).total_seconds()) if expires_at else 0
    remaining = max(0, remaining)
    expires_iso = expires_at.isoformat() if expires_at else None

    if remaining <= 0:
        return {
            'days': 0, 'hours': 0, 'minutes': 0, 'seconds': 0,
            'is_expired': True, 'is_trialing': True,
            'expires_at': expires_iso, 'time_remaining': 'Expirado'
        }

    return {
        'days': remaining // 86400,
        'hours': (remaining % 86400) // 3600,
        'minutes': (remaining % 3600) // 60,
        'seconds': remaining % 60,
        'is_expired': False,
        'is_trialing': True,
        'expires_at': expires_iso,
        'time_remaining': format_time_remaining(remaining)
    }

class TenantService:
    """Tenant service class"""

    @staticmethod
    def register_tenant(name, admin_email, admin_name, password, trial_days=14):
        """Create a school in trial together with its first admin account"""
        try:
            for is_valid, message in (
                validate_name(name, "School name", min_length=3),
                validate_email(admin_email),
                validate_name(admin_name, "Admin name"),
                validate_password(password),
            ):
                if not is_valid:
                    return False, None, message

            email = admin_email.strip().lower()
            if User.query.filter(func.lower(User.email) == email).first():
                return False, None, "Email already registered"

            tenant = Tenant(
                name=name.strip(),
                status=Tenant.STATUS_TRIAL,
                trial_expires_at=datetime.utcnow() + timedelta(days=trial_days),
                config={}
            )
            db.session.add(tenant)
            db.session.flush()

            admin = User(tenant_id=tenant.id, email=email, full_name=admin_name.strip(), role=User.ROLE_ADMIN)
            admin.set_password(password)
            db.session.add(admin)
            db.session.commit()

            logger.info("Registered tenant %s (%s) with admin %s", tenant.id, tenant.name, email)
            return True, tenant, "School registered successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error registering tenant %s: %s", name, e)
            return False, None, f"Error registering school: {str(e)}"

    @staticmethod
    def trial_countdown(tenant, now=None):
        return trial_countdown(tenant, now)

    @staticmethod
    def get_tenant(tenant_id):
        return db.session.get(Tenant, tenant_id) if tenant_id is not None else None

    @staticmethod
    def is_access_blocked(tenant, now=None):
        """Suspended schools and expired trials lose access"""
        if tenant is None:
            return True
        if tenant.status == Tenant.STATUS_SUSPENDED:
            return True
        return tenant.trial_expired(now)

    @staticmethod
    def extend_trial(tenant_id, days_to_add, now=None):
        """Push the trial expiry forward; returns (success, new_expiry, message)"""
        try:
            if isinstance(days_to_add, bool) or not isinstance(days_to_add, int) or days_to_add <= 0:
                return False, None, "A positive number of days is required"

            tenant = db.session.get(Tenant, tenant_id)
            if not tenant:
                return False, None, "School not found"

            if tenant.status == Tenant.STATUS_ACTIVE:
                return False, None, "Cannot extend the trial of an active school"

            now = now or datetime.utcnow()
            current = tenant.trial_expires_at or now
            base_date = current if current > now else now

            tenant.trial_expires_at = base_date + timedelta(days=days_to_add)
            tenant.status = Tenant.STATUS_TRIAL
            db.session.commit()

            logger.info("Trial for tenant %s extended to %s", tenant.id, tenant.trial_expires_at)
            return True, tenant.trial_expires_at, "Trial extended successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error extending trial for tenant %s: %s", tenant_id, e)
            return False, None, f"Error extending trial: {str(e)}"

    @staticmethod
    def update_status(tenant_id, status):
        """Set tenant status to trial, active or suspended"""
        try:
            if status not in Tenant.STATUSES:
                return False, f"Status must be one of: {', '.join(Tenant.STATUSES)}"

            tenant = db.session.get(Tenant, tenant_id)
            if not tenant:
                return False, "School not found"

            tenant.status = status
            db.session.commit()

            logger.info("Tenant %s status set to %s", tenant.id, status)
            return True, "Status updated successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error updating status: {str(e)}"

    @staticmethod
    def update_config(tenant_id, values):
        """Merge school settings into the tenant config"""
        try:
            tenant = db.session.get(Tenant, tenant_id)
            if not tenant:
                return False, "School not found"

            merged = dict(tenant.config or {})
            merged.update(values or {})
            tenant.config = merged
            db.session.commit()
            return True, "Settings saved successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error saving settings: {str(e)}"

    @staticmethod
    def get_all_tenant_metrics():
        """Per-school usage figures for the super admin overview"""
        student_counts = dict(
            db.session.query(Student.tenant_id, func.count(Student.id))
            .filter(Student.status == Student.STATUS_ACTIVE)
            .group_by(Student.tenant_id)
            .all()
        )
        user_counts = dict(
            db.session.query(User.tenant_id, func.count(User.id))
            .filter(User.tenant_id.isnot(None))
            .group_by(User.tenant_id)
            .all()
        )

        tenants = Tenant.query.order_by(Tenant.created_at.desc()).all()
        result = []
        for tenant in tenants:
            data = tenant.to_dict()
            data['active_students'] = student_counts.get(tenant.id, 0)
            data['users'] = user_counts.get(tenant.id, 0)
            data['trial'] = trial_countdown(tenant)
            result.append(data)

        status_totals = {status: 0 for status in Tenant.STATUSES}
        for tenant in tenants:
            status_totals[tenant.status] = status_totals.get(tenant.status, 0) + 1

        return {'tenants': result, 'status_totals': status_totals, 'total': len(tenants)}

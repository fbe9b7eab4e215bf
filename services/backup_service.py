"""
Backup monitoring service for Escola Gestão
"""

import logging
from datetime import datetime, timedelta

from flask import current_app

from database import db
from models.tenant import Tenant, BackupRecord

logger = logging.getLogger(__name__)

STATUS_HEALTHY = 'healthy'
STATUS_WARNING = 'warning'
STATUS_CRITICAL = 'critical'

def backup_status(last_backup, now=None):
    """Freshness of the last backup: (status, description)"""
    if last_backup is None:
        return STATUS_CRITICAL, 'Nunca realizado'

    now = now or datetime.utcnow()
    # Truncated toward zero; a clock slightly ahead reads as 0 hours
    hours_since = max(0, int((now - last_backup).total_seconds() / 3600))

    if hours_since < 24:
        return STATUS_HEALTHY, f'Há {hours_since} horas'
    if hours_since < 48:
        return STATUS_WARNING, f'Há {hours_since} horas'
    return STATUS_CRITICAL, f'Há mais de 48 horas ({hours_since}h)'

class BackupService:
    """Backup service class"""

    @staticmethod
    def start_backup(tenant_id, now=None):
        """Record a completed backup run for a tenant"""
        try:
            tenant = db.session.get(Tenant, tenant_id)
            if not tenant:
                return False, None, "School not found"

            now = now or datetime.utcnow()
            interval = current_app.config.get('BACKUP_INTERVAL_HOURS', 12)
            record = BackupRecord(
                tenant_id=tenant_id,
                started_at=now,
                completed_at=now,
                next_scheduled_at=now + timedelta(hours=interval),
                status='completed'
            )
            db.session.add(record)
            db.session.commit()

            logger.info("Backup recorded for tenant %s", tenant_id)
            return True, record, "Backup completed successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Backup failed for tenant %s: %s", tenant_id, e)
            return False, None, f"Error running backup: {str(e)}"

    @staticmethod
    def tenant_status(tenant_id, now=None):
        """Backup freshness for one tenant"""
        tenant = db.session.get(Tenant, tenant_id)
        if not tenant:
            return None

        last = tenant.last_backup()
        status, description = backup_status(last.completed_at if last else None, now)
        return {
            'tenant_id': tenant.id,
            'tenant_name': tenant.name,
            'status': status,
            'time_since_last_backup': description,
            'last_backup': last.completed_at.isoformat() if last else None,
            'next_scheduled': last.next_scheduled_at.isoformat() if last and last.next_scheduled_at else None
        }

    @staticmethod
    def all_tenants_status(now=None):
        """Backup freshness across every tenant with per-status counts"""
        items = [BackupService.tenant_status(t.id, now) for t in Tenant.query.order_by(Tenant.name).all()]
        counts = {STATUS_HEALTHY: 0, STATUS_WARNING: 0, STATUS_CRITICAL: 0}
        for item in items:
            counts[item['status']] += 1
        return {'tenants': items, 'counts': counts}

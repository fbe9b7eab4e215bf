"""
Tenant models for Escola Gestão
Tenant (school account) and BackupRecord models
"""

from database import db
from datetime import datetime

class Tenant(db.Model):
    """School account, root of data isolation"""
    __tablename__ = 'tenant'

    STATUS_TRIAL = 'trial'
    STATUS_ACTIVE = 'active'
    STATUS_SUSPENDED = 'suspended'
    STATUSES = (STATUS_TRIAL, STATUS_ACTIVE, STATUS_SUSPENDED)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_TRIAL, index=True)
    trial_expires_at = db.Column(db.DateTime, nullable=True)
    config = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    users = db.relationship('User', backref='tenant', lazy='dynamic')
    backups = db.relationship('BackupRecord', backref='tenant', lazy='dynamic',
                              order_by='BackupRecord.completed_at.desc()')

    @property
    def is_trialing(self):
        return self.status == self.STATUS_TRIAL

    def trial_expired(self, now=None):
        """Check if the trial window has passed"""
        if not self.is_trialing:
            return False
        if self.trial_expires_at is None:
            return True
        return self.trial_expires_at <= (now or datetime.utcnow())

    def last_backup(self):
        """Most recent completed backup, if any"""
        return self.backups.filter(BackupRecord.completed_at.isnot(None)).first()

    def to_dict(self):
        """Convert tenant to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status,
            'trial_expires_at': self.trial_expires_at.isoformat() if self.trial_expires_at else None,
            'config': self.config or {},
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<Tenant {self.id}: {self.name}>'

class BackupRecord(db.Model):
    """Backup run for a tenant"""
    __tablename__ = 'backup_record'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    started_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    next_scheduled_at = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='completed')

    def to_dict(self):
        return {
            'id': self.id,
            'tenant_id': self.tenant_id,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'next_scheduled_at': self.next_scheduled_at.isoformat() if self.next_scheduled_at else None,
            'status': self.status
        }

    def __repr__(self):
        return f'<BackupRecord tenant={self.tenant_id} {self.completed_at}>'

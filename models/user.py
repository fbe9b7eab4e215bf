"""
User models for Escola Gestão
Login accounts for super admins, school admins, secretaries and teachers
"""

from database import db
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

class User(db.Model):
    """Login account"""
    __tablename__ = 'user_account'

    ROLE_SUPER_ADMIN = 'super_admin'
    ROLE_ADMIN = 'admin'
    ROLE_SECRETARY = 'secretary'
    ROLE_TEACHER = 'teacher'
    ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_SECRETARY, ROLE_TEACHER)

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=True, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(150), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_SECRETARY)
    password_hash = db.Column(db.String(256), nullable=False)
    password_encrypted = db.Column(db.Text, nullable=True)  # Recoverable copy of a generated password
    employee_id = db.Column(db.Integer, db.ForeignKey('employee.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True)

    employee = db.relationship('Employee', backref=db.backref('user', uselist=False))

    def set_password(self, password, keep_copy=False):
        """Set password hash, optionally keeping an encrypted copy for the admin"""
        self.password_hash = generate_password_hash(password)
        if keep_copy:
            from utils.encryption import password_encryptor
            self.password_encrypted = password_encryptor.encrypt_password(password)
        else:
            self.password_encrypted = None

    def check_password(self, password):
        """Check password against hash"""
        return check_password_hash(self.password_hash, password or '')

    def get_decrypted_password(self):
        """Get the generated password back, if one was kept"""
        from utils.encryption import password_encryptor
        if self.password_encrypted:
            return password_encryptor.decrypt_password(self.password_encrypted)
        return None

    def update_last_login(self):
        """Update last login timestamp"""
        self.last_login = datetime.utcnow()
        db.session.commit()

    @property
    def is_super_admin(self):
        return self.role == self.ROLE_SUPER_ADMIN

    @property
    def is_teacher(self):
        return self.role == self.ROLE_TEACHER

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_secretary(self):
        return self.role == self.ROLE_SECRETARY

    def to_dict(self):
        """Convert user to dictionary for JSON serialization"""
        return {
            'id': self.id,
            'tenant_id': self.tenant_id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'employee_id': self.employee_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_login': self.last_login.isoformat() if self.last_login else None,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

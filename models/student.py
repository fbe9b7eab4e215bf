"""
Student models for Escola Gestão
Student, Guardian and StudentGuardian models
"""

from database import db
from datetime import datetime, date

class Student(db.Model):
    """Student model"""
    __tablename__ = 'student'

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_SUSPENDED = 'suspended'
    STATUS_PRE_ENROLLED = 'pre-enrolled'
    STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE, STATUS_SUSPENDED, STATUS_PRE_ENROLLED)

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    registration_code = db.Column(db.String(30), nullable=False, index=True)
    full_name = db.Column(db.String(150), nullable=False)
    birth_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=True)
    gender = db.Column(db.String(20), nullable=True)
    nationality = db.Column(db.String(60), nullable=True)
    naturality = db.Column(db.String(100), nullable=True)
    cpf = db.Column(db.String(14), nullable=True)
    rg = db.Column(db.String(20), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(120), nullable=True)
    zip_code = db.Column(db.String(10), nullable=True)
    address_street = db.Column(db.String(150), nullable=True)
    address_number = db.Column(db.String(20), nullable=True)
    address_neighborhood = db.Column(db.String(100), nullable=True)
    address_city = db.Column(db.String(100), nullable=True)
    address_state = db.Column(db.String(2), nullable=True)
    special_needs = db.Column(db.Text, nullable=True)
    medication_use = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('tenant_id', 'registration_code', name='unique_registration_per_tenant'),)

    # Relationships
    guardian_links = db.relationship('StudentGuardian', backref='student', lazy='dynamic',
                                     cascade='all, delete-orphan')
    grades = db.relationship('Grade', backref='student', lazy='dynamic')
    tuition_fees = db.relationship('TuitionFee', backref='student', lazy='dynamic')

    PROFILE_FIELDS = (
        'birth_date', 'gender', 'nationality', 'naturality', 'cpf', 'rg', 'phone', 'email',
        'zip_code', 'address_street', 'address_number', 'address_neighborhood',
        'address_city', 'address_state', 'special_needs', 'medication_use'
    )

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    def get_guardians(self):
        """Guardians linked to this student"""
        return [link.guardian for link in self.guardian_links if link.guardian]

    def get_age(self, today=None):
        """Age in whole years, None without a birth date"""
        if not self.birth_date:
            return None
        today = today or date.today()
        years = today.year - self.birth_date.year
        if (today.month, today.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years

    def to_dict(self, include_guardians=False):
        """Convert student to dictionary"""
        data = {
            'id': self.id,
            'registration_code': self.registration_code,
            'full_name': self.full_name,
            'status': self.status,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
        for field in self.PROFILE_FIELDS:
            value = getattr(self, field)
            data[field] = value.isoformat() if isinstance(value, date) else value
        if include_guardians:
            data['guardians'] = [g.to_dict() for g in self.get_guardians()]
        return data

    def __repr__(self):
        return f'<Student {self.registration_code}: {self.full_name}>'

class Guardian(db.Model):
    """Parent or legal guardian"""
    __tablename__ = 'guardian'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    full_name = db.Column(db.String(150), nullable=False)
    relationship_type = db.Column(db.String(30), nullable=True)
    cpf = db.Column(db.String(14), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'relationship_type': self.relationship_type,
            'cpf': self.cpf,
            'phone': self.phone,
            'email': self.email
        }

    def __repr__(self):
        return f'<Guardian {self.full_name}>'

class StudentGuardian(db.Model):
    """Student to guardian link"""
    __tablename__ = 'student_guardian'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id', ondelete='CASCADE'), nullable=False)
    guardian_id = db.Column(db.Integer, db.ForeignKey('guardian.id', ondelete='CASCADE'), nullable=False)
    is_financial_responsible = db.Column(db.Boolean, default=True)

    guardian = db.relationship('Guardian')

    __table_args__ = (db.UniqueConstraint('student_id', 'guardian_id', name='unique_student_guardian'),)

    def __repr__(self):
        return f'<StudentGuardian {self.student_id} -> {self.guardian_id}>'

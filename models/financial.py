"""
Financial models for Escola Gestão
Category tree, Revenue and Expense ledgers, and TuitionFee models
"""

from database import db, NameKeyMixin
from datetime import datetime

PAYMENT_STATUS_PAID = 'pago'
PAYMENT_STATUS_PENDING = 'pendente'
PAYMENT_STATUS_OVERDUE = 'atrasado'
PAYMENT_STATUSES = (PAYMENT_STATUS_PAID, PAYMENT_STATUS_PENDING, PAYMENT_STATUS_OVERDUE)

def _money(value):
    return float(value) if value is not None else None

class Category(NameKeyMixin, db.Model):
    """Income or expense category, up to three levels deep"""
    __tablename__ = 'category'

    TYPE_INCOME = 'income'
    TYPE_EXPENSE = 'expense'
    TYPES = (TYPE_INCOME, TYPE_EXPENSE)
    MAX_DEPTH = 3

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    type = db.Column(db.String(10), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=True, index=True)
    level = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    children = db.relationship('Category', backref=db.backref('parent', remote_side=[id]), lazy='dynamic')

    def has_children(self):
        return self.children.count() > 0

    def path(self):
        """Names from the root down to this category"""
        names = []
        node = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return list(reversed(names))

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'name': self.name,
            'parent_id': self.parent_id,
            'level': self.level,
            'path': ' > '.join(self.path())
        }

    def __repr__(self):
        return f'<Category {self.type}:{self.name} (level {self.level})>'

class Revenue(db.Model):
    """Realized income ledger entry"""
    __tablename__ = 'revenue'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=True)
    payment_method = db.Column(db.String(50), nullable=True)
    source = db.Column(db.String(100), nullable=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('user_account.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    category = db.relationship('Category')

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat() if self.date else None,
            'amount': _money(self.amount),
            'description': self.description,
            'category_id': self.category_id,
            'category': ' > '.join(self.category.path()) if self.category else None,
            'payment_method': self.payment_method,
            'source': self.source,
            'student_id': self.student_id
        }

    def __repr__(self):
        return f'<Revenue {self.date} {self.amount}>'

class Expense(db.Model):
    """Expense ledger entry"""
    __tablename__ = 'expense'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=True)
    payment_method = db.Column(db.String(50), nullable=True)
    destination = db.Column(db.String(150), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=PAYMENT_STATUS_PENDING)
    created_by = db.Column(db.Integer, db.ForeignKey('user_account.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    category = db.relationship('Category')

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat() if self.date else None,
            'amount': _money(self.amount),
            'description': self.description,
            'category_id': self.category_id,
            'category': ' > '.join(self.category.path()) if self.category else None,
            'payment_method': self.payment_method,
            'destination': self.destination,
            'status': self.status
        }

    def __repr__(self):
        return f'<Expense {self.date} {self.amount} {self.status}>'

class TuitionFee(db.Model):
    """Scheduled monthly charge for a student"""
    __tablename__ = 'tuition_fee'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    academic_period_id = db.Column(db.Integer, db.ForeignKey('academic_period.id'), nullable=True)
    reference_year = db.Column(db.Integer, nullable=False)
    reference_month = db.Column(db.Integer, nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    description = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=PAYMENT_STATUS_PENDING, index=True)
    revenue_id = db.Column(db.Integer, db.ForeignKey('revenue.id', ondelete='SET NULL'), nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    revenue = db.relationship('Revenue')

    __table_args__ = (db.UniqueConstraint('student_id', 'reference_year', 'reference_month',
                                          name='unique_student_tuition_month'),)

    @property
    def is_paid(self):
        return self.status == PAYMENT_STATUS_PAID

    def to_dict(self):
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'academic_period_id': self.academic_period_id,
            'reference_year': self.reference_year,
            'reference_month': self.reference_month,
            'amount': _money(self.amount),
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'description': self.description,
            'status': self.status,
            'revenue_id': self.revenue_id,
            'paid_at': self.paid_at.isoformat() if self.paid_at else None
        }

    def __repr__(self):
        return f'<TuitionFee student={self.student_id} {self.reference_month}/{self.reference_year} {self.status}>'

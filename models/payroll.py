"""
Payroll models for Escola Gestão
Role, Employee and Payroll models
"""

from database import db
from datetime import datetime
from models.financial import PAYMENT_STATUS_PENDING, PAYMENT_STATUS_PAID

class Role(db.Model):
    """Job role (cargo)"""
    __tablename__ = 'role'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    department = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)
    base_salary_reference = db.Column(db.Numeric(12, 2), nullable=True)

    employees = db.relationship('Employee', backref='role', lazy='dynamic')

    __table_args__ = (db.UniqueConstraint('tenant_id', 'name', name='unique_role_name_per_tenant'),)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'department': self.department,
            'description': self.description,
            'base_salary_reference': float(self.base_salary_reference) if self.base_salary_reference is not None else None,
            'employees': self.employees.count()
        }

    def __repr__(self):
        return f'<Role {self.name}>'

class Employee(db.Model):
    """Staff record, teachers included"""
    __tablename__ = 'employee'

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    full_name = db.Column(db.String(150), nullable=False)
    role_id = db.Column(db.Integer, db.ForeignKey('role.id'), nullable=True)
    base_salary = db.Column(db.Numeric(12, 2), nullable=False)
    hire_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    department = db.Column(db.String(100), nullable=True)
    contract_type = db.Column(db.String(50), nullable=True)
    is_teacher = db.Column(db.Boolean, default=False, nullable=False)
    email = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    assignments = db.relationship('TeacherAssignment', backref='employee', lazy='dynamic',
                                  cascade='all, delete-orphan')
    payrolls = db.relationship('Payroll', backref='employee', lazy='dynamic')

    def get_assigned_classes(self):
        """Distinct classes this teacher is assigned to, in assignment order"""
        from models.academic import TeacherAssignment
        seen = {}
        for assignment in self.assignments.order_by(TeacherAssignment.id):
            if assignment.school_class and assignment.class_id not in seen:
                seen[assignment.class_id] = assignment.school_class
        return list(seen.values())

    def to_dict(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'role_id': self.role_id,
            'role_name': self.role.name if self.role else None,
            'base_salary': float(self.base_salary) if self.base_salary is not None else None,
            'hire_date': self.hire_date.isoformat() if self.hire_date else None,
            'status': self.status,
            'department': self.department,
            'contract_type': self.contract_type,
            'is_teacher': self.is_teacher,
            'email': self.email,
            'phone': self.phone
        }

    def __repr__(self):
        return f'<Employee {self.full_name}>'

class Payroll(db.Model):
    """Monthly payslip for an employee"""
    __tablename__ = 'payroll'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey('employee.id'), nullable=False)
    reference_month = db.Column(db.Date, nullable=False)  # first day of the month
    gross_salary = db.Column(db.Numeric(12, 2), nullable=False)
    benefits = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discounts = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    net_salary = db.Column(db.Numeric(12, 2), nullable=False)
    payment_status = db.Column(db.String(20), nullable=False, default=PAYMENT_STATUS_PENDING)
    expense_id = db.Column(db.Integer, db.ForeignKey('expense.id', ondelete='SET NULL'), nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    expense = db.relationship('Expense')

    __table_args__ = (db.UniqueConstraint('employee_id', 'reference_month', name='unique_employee_payroll_month'),)

    def calculate_net_salary(self):
        """Net = gross + benefits - discounts"""
        self.net_salary = (self.gross_salary or 0) + (self.benefits or 0) - (self.discounts or 0)
        return self.net_salary

    @property
    def is_paid(self):
        return self.payment_status == PAYMENT_STATUS_PAID

    def to_dict(self):
        return {
            'id': self.id,
            'employee_id': self.employee_id,
            'employee_name': self.employee.full_name if self.employee else None,
            'reference_month': self.reference_month.strftime('%Y-%m') if self.reference_month else None,
            'gross_salary': float(self.gross_salary),
            'benefits': float(self.benefits),
            'discounts': float(self.discounts),
            'net_salary': float(self.net_salary),
            'payment_status': self.payment_status,
            'expense_id': self.expense_id,
            'paid_at': self.paid_at.isoformat() if self.paid_at else None
        }

    def __repr__(self):
        return f'<Payroll employee={self.employee_id} {self.reference_month} {self.payment_status}>'

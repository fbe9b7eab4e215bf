"""
Payroll service for Escola Gestão
Roles, employees and monthly payslips paid through the expense ledger
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from database import db, ValidationError
from models.financial import Category, Expense, PAYMENT_STATUS_PAID, PAYMENT_STATUS_PENDING
from models.payroll import Role, Employee, Payroll
from services.category_service import CategoryService
from utils.db_helpers import atomic, get_for_tenant, safe_add_and_commit
from utils.validators import (
    validate_name, validate_positive_amount, validate_non_negative_amount, parse_date
)

logger = logging.getLogger(__name__)

PAYROLL_CATEGORY = ['Pessoal', 'Folha de Pagamento']

def parse_reference_month(value):
    """First day of the month from 'YYYY-MM', 'YYYY-MM-DD' or a date"""
    if isinstance(value, (date, datetime)):
        return date(value.year, value.month, 1)
    try:
        parsed = datetime.strptime(str(value)[:7], '%Y-%m')
    except ValueError:
        return None
    return date(parsed.year, parsed.month, 1)

class PayrollService:
    """Payroll service class"""

    # Roles

    @staticmethod
    def create_role(tenant_id, data):
        """Create job role"""
        is_valid, message = validate_name(data.get('name'), "Role name")
        if not is_valid:
            return False, None, message

        if Role.query.filter_by(tenant_id=tenant_id, name=data['name'].strip()).first():
            return False, None, "Role already exists"

        reference = data.get('base_salary_reference')
        if reference not in (None, ''):
            is_valid, message = validate_non_negative_amount(reference, "Salary reference")
            if not is_valid:
                return False, None, message

        role = Role(
            tenant_id=tenant_id,
            name=data['name'].strip(),
            department=data.get('department'),
            description=data.get('description'),
            base_salary_reference=Decimal(str(reference)) if reference not in (None, '') else None
        )
        success, message = safe_add_and_commit(role)
        return success, role if success else None, message

    @staticmethod
    def update_role(tenant_id, role_id, data):
        try:
            role = get_for_tenant(Role, tenant_id, role_id)
            if not role:
                return False, "Role not found"

            if 'name' in data:
                is_valid, message = validate_name(data['name'], "Role name")
                if not is_valid:
                    return False, message
                role.name = data['name'].strip()
            for field in ('department', 'description'):
                if field in data:
                    setattr(role, field, data[field])
            if data.get('base_salary_reference') not in (None, ''):
                role.base_salary_reference = Decimal(str(data['base_salary_reference']))

            db.session.commit()
            return True, "Role updated successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error updating role: {str(e)}"

    @staticmethod
    def delete_role(tenant_id, role_id):
        """Delete a role no employee holds"""
        try:
            role = get_for_tenant(Role, tenant_id, role_id)
            if not role:
                return False, "Role not found"
            if role.employees.count() > 0:
                return False, "Role is assigned to employees"

            db.session.delete(role)
            db.session.commit()
            return True, "Role deleted successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error deleting role: {str(e)}"

    @staticmethod
    def get_roles(tenant_id):
        return Role.query.filter_by(tenant_id=tenant_id).order_by(Role.name).all()

    # Employees

    @staticmethod
    def create_employee(tenant_id, data):
        """Create a staff record"""
        is_valid, message = validate_name(data.get('full_name'), "Full name", min_length=3)
        if not is_valid:
            return False, None, message

        is_valid, message = validate_positive_amount(data.get('base_salary'), "Base salary")
        if not is_valid:
            return False, None, message

        hire_date = parse_date(data.get('hire_date'))
        if hire_date is None:
            return False, None, "Hire date is required"

        if data.get('role_id') is not None and not get_for_tenant(Role, tenant_id, data['role_id']):
            return False, None, "Role not found"

        employee = Employee(
            tenant_id=tenant_id,
            full_name=data['full_name'].strip(),
            role_id=data.get('role_id'),
            base_salary=Decimal(str(data['base_salary'])),
            hire_date=hire_date,
            department=data.get('department'),
            contract_type=data.get('contract_type'),
            is_teacher=bool(data.get('is_teacher', False)),
            email=data.get('email'),
            phone=data.get('phone')
        )
        success, message = safe_add_and_commit(employee)
        return success, employee if success else None, message

    @staticmethod
    def update_employee(tenant_id, employee_id, data):
        try:
            employee = get_for_tenant(Employee, tenant_id, employee_id)
            if not employee:
                return False, "Employee not found"

            if 'base_salary' in data:
                is_valid, message = validate_positive_amount(data['base_salary'], "Base salary")
                if not is_valid:
                    return False, message
                employee.base_salary = Decimal(str(data['base_salary']))
            if 'role_id' in data:
                if data['role_id'] is not None and not get_for_tenant(Role, tenant_id, data['role_id']):
                    return False, "Role not found"
                employee.role_id = data['role_id']
            if data.get('status') in (Employee.STATUS_ACTIVE, Employee.STATUS_INACTIVE):
                employee.status = data['status']
            for field in ('full_name', 'department', 'contract_type', 'email', 'phone'):
                if field in data:
                    setattr(employee, field, data[field])

            db.session.commit()
            return True, "Employee updated successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error updating employee: {str(e)}"

    @staticmethod
    def get_employees(tenant_id, active_only=False):
        query = Employee.query.filter_by(tenant_id=tenant_id)
        if active_only:
            query = query.filter_by(status=Employee.STATUS_ACTIVE)
        return query.order_by(Employee.full_name).all()

    # Payslips

    @staticmethod
    def create_payroll(tenant_id, employee_id, reference_month, benefits=0, discounts=0, gross_salary=None):
        """Payslip for one month; gross defaults to the employee's base salary"""
        try:
            employee = get_for_tenant(Employee, tenant_id, employee_id)
            if not employee:
                return False, None, "Employee not found"

            month = parse_reference_month(reference_month)
            if month is None:
                return False, None, "Reference month must be in YYYY-MM format"

            for value, label in ((benefits or 0, "Benefits"), (discounts or 0, "Discounts")):
                is_valid, message = validate_non_negative_amount(value, label)
                if not is_valid:
                    return False, None, message

            if gross_salary is not None:
                is_valid, message = validate_non_negative_amount(gross_salary, "Gross salary")
                if not is_valid:
                    return False, None, message

            if Payroll.query.filter_by(employee_id=employee.id, reference_month=month).first():
                return False, None, "Payroll already exists for this month"

            gross = Decimal(str(gross_salary)) if gross_salary is not None else employee.base_salary
            payroll = Payroll(
                tenant_id=tenant_id,
                employee_id=employee.id,
                reference_month=month,
                gross_salary=gross,
                benefits=Decimal(str(benefits or 0)),
                discounts=Decimal(str(discounts or 0)),
                payment_status=PAYMENT_STATUS_PENDING
            )
            payroll.calculate_net_salary()
            if payroll.net_salary < 0:
                return False, None, "Discounts cannot exceed gross salary plus benefits"

            db.session.add(payroll)
            db.session.commit()
            return True, payroll, "Payroll created successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error creating payroll: %s", e)
            return False, None, f"Error creating payroll: {str(e)}"

    @staticmethod
    def generate_month(tenant_id, reference_month):
        """Payslips for every active employee lacking one; returns (created, skipped)"""
        created = skipped = 0
        for employee in PayrollService.get_employees(tenant_id, active_only=True):
            success, _, _ = PayrollService.create_payroll(tenant_id, employee.id, reference_month)
            if success:
                created += 1
            else:
                skipped += 1
        return created, skipped

    @staticmethod
    def pay_payroll(tenant_id, payroll_id, user_id=None, payment_date=None, payment_method=None):
        """Mark a payslip paid and write its expense entry in the same transaction"""
        try:
            with atomic():
                payroll = get_for_tenant(Payroll, tenant_id, payroll_id)
                if not payroll:
                    raise ValidationError("Payroll not found")
                if payroll.is_paid:
                    raise ValidationError("Payroll is already paid")
                if payroll.net_salary is None or payroll.net_salary < 0:
                    raise ValidationError("Net salary cannot be negative")

                paid_on = parse_date(payment_date) or date.today()
                if paid_on > date.today():
                    raise ValidationError("Payment date cannot be in the future")

                success, category, message = CategoryService.resolve_path(
                    tenant_id, Category.TYPE_EXPENSE, PAYROLL_CATEGORY, commit=False
                )
                if not success:
                    raise ValidationError(message)

                expense = Expense(
                    tenant_id=tenant_id,
                    date=paid_on,
                    amount=payroll.net_salary,
                    description=f"Salário {payroll.reference_month.strftime('%m/%Y')} - {payroll.employee.full_name}",
                    category_id=category.id,
                    payment_method=payment_method,
                    destination=payroll.employee.full_name,
                    status=PAYMENT_STATUS_PAID,
                    created_by=user_id
                )
                db.session.add(expense)
                db.session.flush()

                payroll.expense_id = expense.id
                payroll.payment_status = PAYMENT_STATUS_PAID
                payroll.paid_at = datetime.utcnow()

            logger.info("Payroll %s paid, expense %s", payroll.id, expense.id)
            return True, expense, "Payroll paid successfully"

        except ValidationError as e:
            return False, None, str(e)
        except Exception as e:
            db.session.rollback()
            logger.error("Error paying payroll %s: %s", payroll_id, e)
            return False, None, f"Error paying payroll: {str(e)}"

    @staticmethod
    def reverse_payroll_payment(tenant_id, payroll_id):
        """Delete the payslip's expense entry and reopen it"""
        try:
            with atomic():
                payroll = get_for_tenant(Payroll, tenant_id, payroll_id)
                if not payroll:
                    raise ValidationError("Payroll not found")
                if not payroll.is_paid:
                    raise ValidationError("Payroll is not paid")

                if payroll.expense is not None:
                    db.session.delete(payroll.expense)
                payroll.expense = None
                payroll.payment_status = PAYMENT_STATUS_PENDING
                payroll.paid_at = None

            logger.info("Payment of payroll %s reversed", payroll.id)
            return True, "Payment reversed successfully"

        except ValidationError as e:
            return False, str(e)
        except Exception as e:
            db.session.rollback()
            logger.error("Error reversing payroll %s: %s", payroll_id, e)
            return False, f"Error reversing payment: {str(e)}"

    @staticmethod
    def get_payrolls(tenant_id, reference_month=None, status=None):
        query = Payroll.query.filter_by(tenant_id=tenant_id)
        month = parse_reference_month(reference_month) if reference_month else None
        if month:
            query = query.filter_by(reference_month=month)
        if status:
            query = query.filter_by(payment_status=status)
        return query.order_by(Payroll.reference_month.desc(), Payroll.id).all()

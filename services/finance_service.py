"""
Finance service for Escola Gestão
Revenue and expense ledger entries, expense management and finance metrics
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import extract, func

from database import db, ValidationError
from models.financial import (
    Category, Revenue, Expense, PAYMENT_STATUSES, PAYMENT_STATUS_PAID, PAYMENT_STATUS_PENDING
)
from models.student import Student
from services.category_service import CategoryService
from utils.db_helpers import atomic, get_for_tenant, paginate_query
from utils.validators import validate_positive_amount, validate_date, validate_choice, parse_date

logger = logging.getLogger(__name__)

class FinanceService:
    """Finance service class"""

    @staticmethod
    def _validate_entry(data, partial=False):
        if not partial or 'amount' in data:
            is_valid, message = validate_positive_amount(data.get('amount'))
            if not is_valid:
                return False, message

        if not partial or 'date' in data:
            is_valid, message = validate_date(data.get('date'), allow_future=False)
            if not is_valid:
                return False, message

        if data.get('status') is not None:
            is_valid, message = validate_choice(data['status'], PAYMENT_STATUSES, "Status")
            if not is_valid:
                return False, message

        return True, "Valid entry"

    @staticmethod
    def _resolve_category(tenant_id, transaction_type, data):
        """Final category for an entry, from an id or a name path"""
        if data.get('category_path'):
            success, category, message = CategoryService.resolve_path(
                tenant_id, transaction_type, data['category_path'], commit=False
            )
            if not success:
                return None, message
        else:
            category = get_for_tenant(Category, tenant_id, data.get('category_id'))
            if category is None:
                return None, "Category not found"

        if category.type != transaction_type:
            return None, f"Category is not an {transaction_type} category"
        if category.has_children():
            return None, "Select the most specific category"
        return category, "Category valid"

    @staticmethod
    def record_transaction(tenant_id, user_id, transaction_type, data):
        """Write a revenue or expense entry; returns (success, entry, message)"""
        try:
            if transaction_type not in Category.TYPES:
                return False, None, "Transaction type must be income or expense"

            is_valid, message = FinanceService._validate_entry(data)
            if not is_valid:
                return False, None, message

            with atomic():
                category, message = FinanceService._resolve_category(tenant_id, transaction_type, data)
                if category is None:
                    raise ValidationError(message)

                common = dict(
                    tenant_id=tenant_id,
                    date=parse_date(data['date']),
                    amount=Decimal(str(data['amount'])),
                    description=(data.get('description') or '').strip() or None,
                    category_id=category.id,
                    payment_method=data.get('payment_method'),
                    created_by=user_id
                )

                if transaction_type == Category.TYPE_INCOME:
                    student_id = data.get('student_id')
                    if student_id is not None and not get_for_tenant(Student, tenant_id, student_id):
                        raise ValidationError("Student not found")
                    entry = Revenue(source=data.get('source'), student_id=student_id, **common)
                else:
                    entry = Expense(
                        destination=data.get('destination'),
                        status=data.get('status') or PAYMENT_STATUS_PENDING,
                        **common
                    )
                db.session.add(entry)

            logger.info("Recorded %s of %s for tenant %s", transaction_type, entry.amount, tenant_id)
            return True, entry, "Transaction recorded successfully"

        except ValidationError as e:
            return False, None, str(e)
        except Exception as e:
            db.session.rollback()
            logger.error("Error recording %s: %s", transaction_type, e)
            return False, None, f"Error recording transaction: {str(e)}"

    @staticmethod
    def update_expense(tenant_id, expense_id, data):
        """Update expense fields"""
        try:
            expense = get_for_tenant(Expense, tenant_id, expense_id)
            if not expense:
                return False, "Expense not found"

            is_valid, message = FinanceService._validate_entry(data, partial=True)
            if not is_valid:
                return False, message

            if 'category_id' in data or 'category_path' in data:
                category, message = FinanceService._resolve_category(tenant_id, Category.TYPE_EXPENSE, data)
                if category is None:
                    db.session.rollback()
                    return False, message
                expense.category_id = category.id

            if 'amount' in data:
                expense.amount = Decimal(str(data['amount']))
            if 'date' in data:
                expense.date = parse_date(data['date'])
            for field in ('description', 'payment_method', 'destination', 'status'):
                if field in data:
                    setattr(expense, field, data[field])

            db.session.commit()
            return True, "Expense updated successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error updating expense: {str(e)}"

    @staticmethod
    def delete_expense(tenant_id, expense_id):
        """Delete an expense that is not a payroll payment"""
        from models.payroll import Payroll
        try:
            expense = get_for_tenant(Expense, tenant_id, expense_id)
            if not expense:
                return False, "Expense not found"

            if Payroll.query.filter_by(expense_id=expense.id).first():
                return False, "Expense belongs to a payroll payment; reverse the payment instead"

            db.session.delete(expense)
            db.session.commit()
            return True, "Expense deleted successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error deleting expense: {str(e)}"

    @staticmethod
    def delete_revenue(tenant_id, revenue_id):
        """Delete a manual revenue entry; tuition payments are reversed instead"""
        from models.financial import TuitionFee
        try:
            revenue = get_for_tenant(Revenue, tenant_id, revenue_id)
            if not revenue:
                return False, "Revenue not found"

            if TuitionFee.query.filter_by(revenue_id=revenue.id).first():
                return False, "Revenue belongs to a tuition payment; reverse the payment instead"

            db.session.delete(revenue)
            db.session.commit()
            return True, "Revenue deleted successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error deleting revenue: {str(e)}"

    @staticmethod
    def get_expenses(tenant_id, status=None, start_date=None, end_date=None, page=1, per_page=20):
        query = Expense.query.filter_by(tenant_id=tenant_id)
        if status:
            query = query.filter_by(status=status)
        if start_date:
            query = query.filter(Expense.date >= parse_date(start_date))
        if end_date:
            query = query.filter(Expense.date <= parse_date(end_date))
        return paginate_query(query.order_by(Expense.date.desc(), Expense.id.desc()), page, per_page)

    @staticmethod
    def get_revenues(tenant_id, start_date=None, end_date=None, page=1, per_page=20):
        query = Revenue.query.filter_by(tenant_id=tenant_id)
        if start_date:
            query = query.filter(Revenue.date >= parse_date(start_date))
        if end_date:
            query = query.filter(Revenue.date <= parse_date(end_date))
        return paginate_query(query.order_by(Revenue.date.desc(), Revenue.id.desc()), page, per_page)

    @staticmethod
    def _monthly(model, tenant_id, year, extra_filter=None):
        query = db.session.query(extract('month', model.date), func.sum(model.amount))\
            .filter(model.tenant_id == tenant_id, extract('year', model.date) == year)
        if extra_filter is not None:
            query = query.filter(extra_filter)
        totals = {int(month): Decimal(str(total or 0)) for month, total in
                  query.group_by(extract('month', model.date)).all()}
        return [totals.get(month, Decimal('0')) for month in range(1, 13)]

    @staticmethod
    def _by_category(model, tenant_id, year, extra_filter=None):
        query = db.session.query(model.category_id, func.sum(model.amount))\
            .filter(model.tenant_id == tenant_id, extract('year', model.date) == year)
        if extra_filter is not None:
            query = query.filter(extra_filter)

        breakdown = []
        for category_id, total in query.group_by(model.category_id).all():
            category = db.session.get(Category, category_id) if category_id else None
            breakdown.append({
                'category_id': category_id,
                'category': ' > '.join(category.path()) if category else 'Sem categoria',
                'total': float(total or 0)
            })
        return sorted(breakdown, key=lambda item: item['total'], reverse=True)

    @staticmethod
    def get_metrics(tenant_id, year=None):
        """Income, paid expense and balance for a year, monthly and by category"""
        year = year or date.today().year
        paid_expense = Expense.status == PAYMENT_STATUS_PAID

        income = FinanceService._monthly(Revenue, tenant_id, year)
        expense = FinanceService._monthly(Expense, tenant_id, year, paid_expense)
        total_income = sum(income, Decimal('0'))
        total_expense = sum(expense, Decimal('0'))

        pending_expense = db.session.query(func.coalesce(func.sum(Expense.amount), 0))\
            .filter(Expense.tenant_id == tenant_id, Expense.status != PAYMENT_STATUS_PAID).scalar()

        return {
            'year': year,
            'total_income': float(total_income),
            'total_expense': float(total_expense),
            'balance': float(total_income - total_expense),
            'pending_expense': float(pending_expense or 0),
            'monthly': [
                {'month': month, 'income': float(income[month - 1]), 'expense': float(expense[month - 1])}
                for month in range(1, 13)
            ],
            'income_by_category': FinanceService._by_category(Revenue, tenant_id, year),
            'expense_by_category': FinanceService._by_category(Expense, tenant_id, year, paid_expense)
        }

    @staticmethod
    def get_year_ledgers(tenant_id, year):
        """All revenue and expense entries of a year, oldest first"""
        def entries(model):
            return model.query.filter(
                model.tenant_id == tenant_id,
                extract('year', model.date) == year
            ).order_by(model.date, model.id).all()
        return entries(Revenue), entries(Expense)

"""
Tuition service for Escola Gestão
Bulk monthly fee generation and paid/reversal bookkeeping against the revenue ledger
"""

import calendar
import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func

from database import db, ValidationError
from models.academic import AcademicPeriod
from models.financial import (
    Category, Revenue, TuitionFee, PAYMENT_STATUS_PAID, PAYMENT_STATUS_PENDING, PAYMENT_STATUS_OVERDUE
)
from models.student import Student
from services.category_service import CategoryService
from utils.db_helpers import atomic, get_for_tenant, paginate_query
from utils.validators import validate_positive_amount, validate_due_day, validate_year, parse_date

logger = logging.getLogger(__name__)

TUITION_CATEGORY = 'Mensalidades'

def clamp_due_date(year, month, due_day):
    """Due date in the given month, using the last day when due_day overflows it"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(int(due_day), last_day))

class TuitionService:
    """Tuition service class"""

    @staticmethod
    def generate_fees(tenant_id, year, base_amount, due_day, academic_period_id=None,
                      description=None, months=None):
        """Create one fee per active student and month, skipping pairs that exist

        Returns (success, {'created', 'skipped', 'students'}, message).
        """
        try:
            for is_valid, message in (
                validate_year(year),
                validate_positive_amount(base_amount, "Base amount"),
                validate_due_day(due_day),
            ):
                if not is_valid:
                    return False, None, message

            year = int(year)
            months = sorted(set(int(m) for m in (months or range(1, 13))))
            if any(m < 1 or m > 12 for m in months):
                return False, None, "Months must be between 1 and 12"

            if academic_period_id is not None and not get_for_tenant(AcademicPeriod, tenant_id, academic_period_id):
                return False, None, "Academic period not found"

            students = Student.query.filter_by(tenant_id=tenant_id, status=Student.STATUS_ACTIVE)\
                .order_by(Student.id).all()
            if not students:
                return False, None, "No active students found"

            existing = set(
                db.session.query(TuitionFee.student_id, TuitionFee.reference_month)
                .filter(TuitionFee.tenant_id == tenant_id, TuitionFee.reference_year == year)
                .all()
            )

            amount = Decimal(str(base_amount))
            created = skipped = 0
            with atomic():
                for student in students:
                    for month in months:
                        if (student.id, month) in existing:
                            skipped += 1
                            continue
                        db.session.add(TuitionFee(
                            tenant_id=tenant_id,
                            student_id=student.id,
                            academic_period_id=academic_period_id,
                            reference_year=year,
                            reference_month=month,
                            amount=amount,
                            due_date=clamp_due_date(year, month, due_day),
                            description=description or f'Mensalidade {month:02d}/{year}',
                            status=PAYMENT_STATUS_PENDING
                        ))
                        created += 1

            logger.info("Generated %s tuition fees for tenant %s in %s (%s skipped)",
                        created, tenant_id, year, skipped)
            counts = {'created': created, 'skipped': skipped, 'students': len(students)}
            return True, counts, f"{created} fees generated, {skipped} already existed"

        except Exception as e:
            db.session.rollback()
            logger.error("Error generating tuition fees for tenant %s: %s", tenant_id, e)
            return False, None, f"Error generating fees: {str(e)}"

    @staticmethod
    def mark_paid(tenant_id, fee_id, user_id=None, payment_date=None, payment_method=None):
        """Mark a fee paid and write its revenue entry in the same transaction

        Returns (success, revenue, message).
        """
        try:
            with atomic():
                fee = get_for_tenant(TuitionFee, tenant_id, fee_id)
                if not fee:
                    raise ValidationError("Tuition fee not found")
                if fee.is_paid or fee.revenue_id is not None:
                    raise ValidationError("Tuition fee is already paid")

                paid_on = parse_date(payment_date) or date.today()
                if paid_on > date.today():
                    raise ValidationError("Payment date cannot be in the future")

                success, category, message = CategoryService.resolve_path(
                    tenant_id, Category.TYPE_INCOME, [TUITION_CATEGORY], commit=False
                )
                if not success:
                    raise ValidationError(message)

                revenue = Revenue(
                    tenant_id=tenant_id,
                    date=paid_on,
                    amount=fee.amount,
                    description=fee.description or f'Mensalidade {fee.reference_month:02d}/{fee.reference_year}',
                    category_id=category.id,
                    payment_method=payment_method,
                    source=fee.student.full_name if fee.student else None,
                    student_id=fee.student_id,
                    created_by=user_id
                )
                db.session.add(revenue)
                db.session.flush()

                fee.revenue_id = revenue.id
                fee.status = PAYMENT_STATUS_PAID
                fee.paid_at = datetime.utcnow()

            logger.info("Tuition fee %s paid, revenue %s", fee.id, revenue.id)
            return True, revenue, "Payment registered successfully"

        except ValidationError as e:
            return False, None, str(e)
        except Exception as e:
            db.session.rollback()
            logger.error("Error registering payment for fee %s: %s", fee_id, e)
            return False, None, f"Error registering payment: {str(e)}"

    @staticmethod
    def reverse_payment(tenant_id, fee_id, today=None):
        """Delete the fee's revenue entry and reopen the fee in one transaction"""
        try:
            with atomic():
                fee = get_for_tenant(TuitionFee, tenant_id, fee_id)
                if not fee:
                    raise ValidationError("Tuition fee not found")
                if not fee.is_paid:
                    raise ValidationError("Tuition fee is not paid")

                if fee.revenue_id is not None:
                    revenue = db.session.get(Revenue, fee.revenue_id)
                    if revenue is not None:
                        db.session.delete(revenue)
                else:
                    logger.warning("Paid tuition fee %s had no linked revenue", fee.id)

                today = today or date.today()
                fee.revenue = None
                fee.paid_at = None
                fee.status = PAYMENT_STATUS_OVERDUE if fee.due_date < today else PAYMENT_STATUS_PENDING

            logger.info("Payment of tuition fee %s reversed", fee.id)
            return True, "Payment reversed successfully"

        except ValidationError as e:
            return False, str(e)
        except Exception as e:
            db.session.rollback()
            logger.error("Error reversing payment for fee %s: %s", fee_id, e)
            return False, f"Error reversing payment: {str(e)}"

    @staticmethod
    def refresh_overdue(tenant_id, today=None):
        """Flag pending fees past their due date as overdue; returns how many changed"""
        today = today or date.today()
        try:
            count = TuitionFee.query.filter(
                TuitionFee.tenant_id == tenant_id,
                TuitionFee.status == PAYMENT_STATUS_PENDING,
                TuitionFee.due_date < today
            ).update({TuitionFee.status: PAYMENT_STATUS_OVERDUE}, synchronize_session=False)
            db.session.commit()
            if count:
                logger.info("%s tuition fees marked overdue for tenant %s", count, tenant_id)
            return count
        except Exception as e:
            db.session.rollback()
            logger.error("Error refreshing overdue fees for tenant %s: %s", tenant_id, e)
            raise

    @staticmethod
    def _filtered(tenant_id, status=None, year=None, month=None, student_id=None):
        query = TuitionFee.query.filter_by(tenant_id=tenant_id)
        if status:
            query = query.filter_by(status=status)
        if year:
            query = query.filter_by(reference_year=int(year))
        if month:
            query = query.filter_by(reference_month=int(month))
        if student_id:
            query = query.filter_by(student_id=student_id)
        return query

    @staticmethod
    def list_fees(tenant_id, status=None, year=None, month=None, student_id=None, page=1, per_page=20):
        query = TuitionService._filtered(tenant_id, status, year, month, student_id)
        query = query.order_by(TuitionFee.due_date, TuitionFee.id)
        return paginate_query(query, page, per_page)

    @staticmethod
    def get_all_fees(tenant_id, status=None, year=None, month=None):
        """Unpaginated listing used by the export"""
        return TuitionService._filtered(tenant_id, status, year, month)\
            .order_by(TuitionFee.due_date, TuitionFee.id).all()

    @staticmethod
    def summary(tenant_id, year=None, month=None):
        """Paid and open totals; open includes overdue"""
        rows = TuitionService._filtered(tenant_id, year=year, month=month)\
            .with_entities(TuitionFee.status, func.count(TuitionFee.id), func.sum(TuitionFee.amount))\
            .group_by(TuitionFee.status).all()

        by_status = {status: (count, Decimal(str(total or 0))) for status, count, total in rows}
        paid_count, paid_total = by_status.get(PAYMENT_STATUS_PAID, (0, Decimal('0')))
        pending_count, pending_total = by_status.get(PAYMENT_STATUS_PENDING, (0, Decimal('0')))
        overdue_count, overdue_total = by_status.get(PAYMENT_STATUS_OVERDUE, (0, Decimal('0')))

        return {
            'paid_count': paid_count,
            'paid_total': float(paid_total),
            'pending_count': pending_count + overdue_count,
            'pending_total': float(pending_total + overdue_total),
            'overdue_count': overdue_count,
            'overdue_total': float(overdue_total),
            'total_count': paid_count + pending_count + overdue_count,
            'total': float(paid_total + pending_total + overdue_total)
        }

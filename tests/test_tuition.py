"""
Tests for tuition generation and payment bookkeeping
"""

import unittest
from datetime import date

from database import db
from models.financial import Category, Revenue, TuitionFee
from models.student import Student
from services.finance_service import FinanceService
from services.tuition_service import TuitionService, clamp_due_date, TUITION_CATEGORY
from tests.base_test import BaseTestCase

class TestDueDate(unittest.TestCase):

    def test_due_day_within_month(self):
        self.assertEqual(clamp_due_date(2025, 3, 10), date(2025, 3, 10))

    def test_due_day_clamped_to_month_end(self):
        """Test a due day past the month end falls on its last day"""
        self.assertEqual(clamp_due_date(2025, 2, 31), date(2025, 2, 28))
        self.assertEqual(clamp_due_date(2024, 2, 31), date(2024, 2, 29))
        self.assertEqual(clamp_due_date(2025, 4, 31), date(2025, 4, 30))
        self.assertEqual(clamp_due_date(2025, 12, 31), date(2025, 12, 31))

class TestTuitionService(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant()
        self.user = self.create_user(self.tenant)
        self.students = [self.create_student(self.tenant, name) for name in ('Ana', 'Bruno', 'Carla')]

    def _generate(self, **overrides):
        params = {'year': 2025, 'base_amount': '650.00', 'due_day': 10}
        params.update(overrides)
        return TuitionService.generate_fees(self.tenant.id, **params)

    def test_generates_one_fee_per_student_and_month(self):
        """Test three students over twelve months give 36 fees"""
        success, counts, _ = self._generate()

        self.assertTrue(success)
        self.assertEqual(counts, {'created': 36, 'skipped': 0, 'students': 3})
        self.assertEqual(TuitionFee.query.count(), 36)

        fee = TuitionFee.query.filter_by(student_id=self.students[0].id, reference_month=3).one()
        self.assertEqual(fee.due_date, date(2025, 3, 10))
        self.assertEqual(fee.description, 'Mensalidade 03/2025')
        self.assertEqual(fee.status, 'pendente')
        self.assertEqual(float(fee.amount), 650.0)

    def test_regeneration_skips_existing_months(self):
        """Test running again only fills the gaps"""
        self._generate(months=[1, 2])
        self.create_student(self.tenant, 'Daniel')

        success, counts, message = self._generate(months=[1, 2, 3])

        self.assertTrue(success)
        self.assertEqual(counts['created'], 6)
        self.assertEqual(counts['skipped'], 6)
        self.assertEqual(message, '6 fees generated, 6 already existed')
        self.assertEqual(TuitionFee.query.count(), 12)

    def test_inactive_students_are_skipped(self):
        self.students[2].status = Student.STATUS_INACTIVE
        db.session.commit()

        _, counts, _ = self._generate(months=[5])

        self.assertEqual(counts['created'], 2)
        self.assertIsNone(TuitionFee.query.filter_by(student_id=self.students[2].id).first())

    def test_february_due_dates_are_clamped(self):
        self._generate(year=2024, due_day=31, months=[2])

        fee = TuitionFee.query.filter_by(reference_month=2).first()
        self.assertEqual(fee.due_date, date(2024, 2, 29))

    def test_invalid_generation_input(self):
        """Test amount, due day, months and empty schools are refused"""
        self.assertFalse(self._generate(base_amount='0')[0])
        self.assertFalse(self._generate(due_day=32)[0])
        self.assertFalse(self._generate(months=[13])[0])

        other = self.create_tenant('Escola Vazia')
        success, _, message = TuitionService.generate_fees(other.id, 2025, '100', 5)
        self.assertFalse(success)
        self.assertEqual(message, 'No active students found')
        self.assertEqual(TuitionFee.query.count(), 0)

    def test_mark_paid_creates_revenue(self):
        """Test paying a fee writes exactly one linked revenue"""
        self._generate(months=[3])
        fee = TuitionFee.query.first()

        success, revenue, _ = TuitionService.mark_paid(self.tenant.id, fee.id, self.user.id,
                                                       payment_date='2025-03-08', payment_method='pix')

        self.assertTrue(success)
        self.assertEqual(Revenue.query.count(), 1)
        self.assertEqual(fee.status, 'pago')
        self.assertEqual(fee.revenue_id, revenue.id)
        self.assertIsNotNone(fee.paid_at)
        self.assertEqual(revenue.amount, fee.amount)
        self.assertEqual(revenue.student_id, fee.student_id)
        self.assertEqual(revenue.date, date(2025, 3, 8))
        self.assertEqual(revenue.category.name, TUITION_CATEGORY)
        self.assertEqual(revenue.category.type, Category.TYPE_INCOME)

    def test_double_payment_refused(self):
        self._generate(months=[3])
        fee = TuitionFee.query.first()
        TuitionService.mark_paid(self.tenant.id, fee.id)

        success, _, message = TuitionService.mark_paid(self.tenant.id, fee.id)

        self.assertFalse(success)
        self.assertEqual(message, 'Tuition fee is already paid')
        self.assertEqual(Revenue.query.count(), 1)

    def test_reverse_deletes_only_the_linked_revenue(self):
        """Test reversal removes the payment revenue and leaves manual entries"""
        self._generate(months=[3])
        fee = TuitionFee.query.first()
        FinanceService.record_transaction(
            self.tenant.id, self.user.id, Category.TYPE_INCOME,
            {'date': '2025-03-01', 'amount': '80', 'category_path': [TUITION_CATEGORY]}
        )
        _, revenue, _ = TuitionService.mark_paid(self.tenant.id, fee.id)
        revenue_id = revenue.id

        success, _ = TuitionService.reverse_payment(self.tenant.id, fee.id, today=date(2025, 3, 5))

        self.assertTrue(success)
        self.assertIsNone(db.session.get(Revenue, revenue_id))
        self.assertEqual(Revenue.query.count(), 1)
        self.assertIsNone(fee.revenue_id)
        self.assertIsNone(fee.paid_at)
        self.assertEqual(fee.status, 'pendente')

    def test_reverse_after_due_date_is_overdue(self):
        self._generate(months=[3])
        fee = TuitionFee.query.first()
        TuitionService.mark_paid(self.tenant.id, fee.id)

        TuitionService.reverse_payment(self.tenant.id, fee.id, today=date(2025, 4, 1))

        self.assertEqual(fee.status, 'atrasado')

    def test_reverse_unpaid_refused(self):
        self._generate(months=[3])
        fee = TuitionFee.query.first()

        success, message = TuitionService.reverse_payment(self.tenant.id, fee.id)

        self.assertFalse(success)
        self.assertEqual(message, 'Tuition fee is not paid')

    def test_other_tenant_cannot_pay(self):
        self._generate(months=[3])
        fee = TuitionFee.query.first()
        other = self.create_tenant('Outra Escola')

        success, _, message = TuitionService.mark_paid(other.id, fee.id)

        self.assertFalse(success)
        self.assertEqual(message, 'Tuition fee not found')

    def test_tuition_revenue_cannot_be_deleted_directly(self):
        self._generate(months=[3])
        fee = TuitionFee.query.first()
        _, revenue, _ = TuitionService.mark_paid(self.tenant.id, fee.id)

        success, _ = FinanceService.delete_revenue(self.tenant.id, revenue.id)

        self.assertFalse(success)
        self.assertEqual(Revenue.query.count(), 1)

    def test_refresh_overdue_and_summary(self):
        """Test overdue flagging and the paid/open totals"""
        self._generate(months=[1, 2, 3])
        paid = TuitionFee.query.filter_by(student_id=self.students[0].id, reference_month=1).one()
        TuitionService.mark_paid(self.tenant.id, paid.id)

        changed = TuitionService.refresh_overdue(self.tenant.id, today=date(2025, 2, 15))

        # January and February of the two other students, February of the first
        self.assertEqual(changed, 5)

        summary = TuitionService.summary(self.tenant.id, year=2025)
        self.assertEqual(summary['paid_count'], 1)
        self.assertEqual(summary['paid_total'], 650.0)
        self.assertEqual(summary['overdue_count'], 5)
        self.assertEqual(summary['pending_count'], 8)
        self.assertEqual(summary['pending_total'], 8 * 650.0)
        self.assertEqual(summary['total_count'], 9)

        listing = TuitionService.list_fees(self.tenant.id, status='atrasado', per_page=50)
        self.assertEqual(listing['total'], 5)

if __name__ == '__main__':
    unittest.main()

"""
Unit tests for database models
"""

import unittest
from datetime import date, datetime, timedelta
from decimal import Decimal

from database import db
from models.tenant import Tenant, BackupRecord
from models.user import User
from models.academic import TeacherAssignment
from models.financial import Category
from models.payroll import Payroll
from tests.base_test import BaseTestCase

class TestModels(BaseTestCase):

    def test_user_password(self):
        """Test password hashing and the recoverable copy"""
        tenant = self.create_tenant()
        user = self.create_user(tenant, role=User.ROLE_SECRETARY)

        self.assertTrue(user.check_password('secret123'))
        self.assertFalse(user.check_password('wrongpassword'))
        self.assertIsNone(user.get_decrypted_password())

        user.set_password('gerada123', keep_copy=True)
        db.session.commit()
        self.assertEqual(user.get_decrypted_password(), 'gerada123')
        self.assertNotEqual(user.password_encrypted, 'gerada123')

    def test_tenant_trial_expired(self):
        """Test trial expiry only applies while trialing"""
        tenant = self.create_tenant(trial_days=3)
        now = datetime.utcnow()

        self.assertFalse(tenant.trial_expired(now))
        self.assertTrue(tenant.trial_expired(now + timedelta(days=4)))

        tenant.status = Tenant.STATUS_ACTIVE
        self.assertFalse(tenant.trial_expired(now + timedelta(days=4)))

    def test_tenant_last_backup(self):
        """Test the most recent completed backup is returned"""
        tenant = self.create_tenant()
        self.assertIsNone(tenant.last_backup())

        older = datetime(2025, 1, 1, 8, 0)
        newer = datetime(2025, 1, 2, 8, 0)
        for completed in (older, newer):
            db.session.add(BackupRecord(tenant_id=tenant.id, started_at=completed, completed_at=completed))
        db.session.add(BackupRecord(tenant_id=tenant.id, started_at=newer, completed_at=None, status='running'))
        db.session.commit()

        self.assertEqual(tenant.last_backup().completed_at, newer)

    def test_category_path(self):
        """Test category path walks up to the root"""
        tenant = self.create_tenant()
        root = Category(tenant_id=tenant.id, type=Category.TYPE_EXPENSE, name='Despesas Fixas', level=1)
        db.session.add(root)
        db.session.flush()
        child = Category(tenant_id=tenant.id, type=Category.TYPE_EXPENSE, name='Utilidades',
                         parent_id=root.id, level=2)
        db.session.add(child)
        db.session.commit()

        self.assertEqual(child.path(), ['Despesas Fixas', 'Utilidades'])
        self.assertEqual(child.to_dict()['path'], 'Despesas Fixas > Utilidades')
        self.assertTrue(root.has_children())
        self.assertFalse(child.has_children())

    def test_name_key_follows_name(self):
        tenant = self.create_tenant()
        category = Category(tenant_id=tenant.id, type=Category.TYPE_EXPENSE, name=' Água Mineral ', level=1)
        self.assertEqual(category.name_key, 'água mineral')

        category.name = 'ÓLEO'
        self.assertEqual(category.name_key, 'óleo')

    def test_student_age(self):
        """Test age counts whole years"""
        tenant = self.create_tenant()
        student = self.create_student(tenant)
        self.assertIsNone(student.get_age())

        student.birth_date = date(2015, 6, 10)
        self.assertEqual(student.get_age(date(2025, 6, 9)), 9)
        self.assertEqual(student.get_age(date(2025, 6, 10)), 10)

    def test_assigned_classes_are_distinct(self):
        """Test a teacher with several assignments per class sees each class once"""
        tenant = self.create_tenant()
        course_a = self.create_course(tenant, '1º Ano')
        course_b = self.create_course(tenant, '2º Ano')
        class_b = self.create_class(tenant, 'Turma B')
        class_a = self.create_class(tenant, 'Turma A')
        teacher = self.create_employee(tenant, is_teacher=True)

        for school_class, course in ((class_b, course_a), (class_a, None), (class_b, course_b)):
            db.session.add(TeacherAssignment(employee_id=teacher.id, class_id=school_class.id,
                                             course_id=course.id if course else None))
        db.session.commit()

        classes = teacher.get_assigned_classes()
        self.assertEqual([c.name for c in classes], ['Turma B', 'Turma A'])

    def test_payroll_net_salary(self):
        """Test net salary is gross plus benefits minus discounts"""
        tenant = self.create_tenant()
        employee = self.create_employee(tenant)
        payroll = Payroll(tenant_id=tenant.id, employee_id=employee.id, reference_month=date(2025, 3, 1),
                          gross_salary=Decimal('3000.00'), benefits=Decimal('250.00'),
                          discounts=Decimal('200.00'))

        self.assertEqual(payroll.calculate_net_salary(), Decimal('3050.00'))
        self.assertFalse(payroll.is_paid)

if __name__ == '__main__':
    unittest.main()

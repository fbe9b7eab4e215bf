"""
Tests for student records, classes and teaching staff
"""

import unittest
from datetime import date

from database import db
from models.academic import TeacherAssignment
from models.payroll import Employee
from models.student import Student, Guardian, StudentGuardian
from models.user import User
from services.secretary_service import SecretaryService
from tests.base_test import BaseTestCase

class TestStudents(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant()

    def test_registration_codes_follow_sequence(self):
        """Test codes are YYYYSSS, one past the highest code of the year"""
        self.assertEqual(SecretaryService.generate_registration_code(self.tenant.id, 2025), '2025001')

        SecretaryService.add_student(self.tenant.id, {'full_name': 'Ana Lima', 'registration_code': '2025001'})
        SecretaryService.add_student(self.tenant.id, {'full_name': 'Bia Lima', 'registration_code': '2025007'})

        self.assertEqual(SecretaryService.generate_registration_code(self.tenant.id, 2025), '2025008')
        self.assertEqual(SecretaryService.generate_registration_code(self.tenant.id, 2026), '2026001')

    def test_non_numeric_suffix_restarts_sequence(self):
        SecretaryService.add_student(self.tenant.id, {'full_name': 'Ana Lima', 'registration_code': '2025-ABC'})

        self.assertEqual(SecretaryService.generate_registration_code(self.tenant.id, 2025), '2025001')

    def test_add_student(self):
        school_class = self.create_class(self.tenant)

        success, student, _ = SecretaryService.add_student(self.tenant.id, {
            'full_name': '  Lucas Almeida ',
            'class_id': school_class.id,
            'birth_date': '2016-04-02',
            'address_city': 'Campinas'
        })

        self.assertTrue(success)
        self.assertEqual(student.full_name, 'Lucas Almeida')
        self.assertEqual(student.status, Student.STATUS_ACTIVE)
        self.assertEqual(student.birth_date.year, 2016)
        self.assertEqual(student.address_city, 'Campinas')

    def test_duplicate_code_refused(self):
        SecretaryService.add_student(self.tenant.id, {'full_name': 'Ana Lima', 'registration_code': 'A-1'})
        success, _, message = SecretaryService.add_student(
            self.tenant.id, {'full_name': 'Bia Lima', 'registration_code': 'A-1'}
        )
        self.assertFalse(success)
        self.assertEqual(message, 'Registration code already exists')

    def test_class_of_other_tenant_refused(self):
        other = self.create_tenant('Outra Escola')
        foreign_class = self.create_class(other)

        success, _, message = SecretaryService.add_student(
            self.tenant.id, {'full_name': 'Ana Lima', 'class_id': foreign_class.id}
        )

        self.assertFalse(success)
        self.assertEqual(message, 'Class not found')

    def test_student_with_guardian(self):
        success, student, _ = SecretaryService.create_student_with_guardian(
            self.tenant.id,
            {'full_name': 'Lucas Almeida'},
            {'full_name': 'Maria Almeida', 'relationship_type': 'Mãe', 'email': 'maria@familia.test'}
        )

        self.assertTrue(success)
        guardians = student.get_guardians()
        self.assertEqual(len(guardians), 1)
        self.assertEqual(guardians[0].full_name, 'Maria Almeida')
        self.assertEqual(guardians[0].tenant_id, self.tenant.id)

    def test_student_with_guardian_validates_code(self):
        success, _, message = SecretaryService.create_student_with_guardian(
            self.tenant.id,
            {'full_name': 'Lucas Almeida', 'registration_code': 'código inválido'},
            {'full_name': 'Maria Almeida'}
        )

        self.assertFalse(success)
        self.assertIn('Registration code can only contain', message)
        self.assertEqual(Guardian.query.count(), 0)

    def test_pre_enroll(self):
        """Test the public form creates a pre-enrolled student with the next code"""
        success, student, _ = SecretaryService.pre_enroll(self.tenant.id, {
            'full_name': 'Clara Souza',
            'birth_date': '2017-08-20',
            'phone': '(11) 98888-7777',
            'status': Student.STATUS_ACTIVE,
            'registration_code': 'ESCOLHIDO'
        })

        self.assertTrue(success)
        self.assertEqual(student.status, Student.STATUS_PRE_ENROLLED)
        self.assertEqual(student.registration_code, f'{date.today().year}001')
        self.assertEqual(student.birth_date.day, 20)
        self.assertIsNone(student.class_id)

    def test_pre_enroll_requires_contact_fields(self):
        success, _, message = SecretaryService.pre_enroll(self.tenant.id, {'full_name': 'Clara Souza'})

        self.assertFalse(success)
        self.assertEqual(message, 'Full name, birth date and phone are required')
        self.assertEqual(Student.query.count(), 0)

    def test_pre_enroll_refused_for_blocked_school(self):
        expired = self.create_tenant('Escola Expirada', trial_days=-1)
        data = {'full_name': 'Clara Souza', 'birth_date': '2017-08-20', 'phone': '11988887777'}

        success, _, _ = SecretaryService.pre_enroll(expired.id, data)
        self.assertFalse(success)

        success, _, message = SecretaryService.pre_enroll(9999, data)
        self.assertFalse(success)
        self.assertEqual(message, 'School not found')

    def test_invalid_guardian_writes_nothing(self):
        success, _, _ = SecretaryService.create_student_with_guardian(
            self.tenant.id,
            {'full_name': 'Lucas Almeida'},
            {'full_name': 'Maria Almeida', 'email': 'not-an-email'}
        )

        self.assertFalse(success)
        self.assertEqual(Student.query.count(), 0)
        self.assertEqual(Guardian.query.count(), 0)
        self.assertEqual(StudentGuardian.query.count(), 0)

    def test_update_and_deactivate(self):
        _, student, _ = SecretaryService.add_student(self.tenant.id, {'full_name': 'Ana Lima'})

        success, _ = SecretaryService.update_student(self.tenant.id, student.id, {'phone': '(11) 90000-0000'})
        self.assertTrue(success)
        self.assertEqual(student.phone, '(11) 90000-0000')

        success, _ = SecretaryService.update_student(self.tenant.id, student.id, {'status': 'graduated'})
        self.assertFalse(success)

        SecretaryService.deactivate_student(self.tenant.id, student.id)
        self.assertEqual(student.status, Student.STATUS_INACTIVE)

    def test_search_students(self):
        SecretaryService.add_student(self.tenant.id, {'full_name': 'Ana Lima', 'registration_code': 'X1'})
        SecretaryService.add_student(self.tenant.id, {'full_name': 'Bruno Reis', 'registration_code': 'X2'})

        by_name = SecretaryService.get_students(self.tenant.id, search='lima')
        by_code = SecretaryService.get_students(self.tenant.id, search='X2')

        self.assertEqual([s.full_name for s in by_name['items']], ['Ana Lima'])
        self.assertEqual([s.full_name for s in by_code['items']], ['Bruno Reis'])

class TestClassesAndTeachers(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant()
        _, self.course, _ = SecretaryService.create_course(self.tenant.id, {'name': '1º Ano'})
        _, self.school_class, _ = SecretaryService.create_class(self.tenant.id, {
            'name': 'Turma A', 'school_year': 2025, 'course_ids': [self.course.id]
        })

    def test_catalog_names_are_unique(self):
        success, _, message = SecretaryService.create_course(self.tenant.id, {'name': '1º ANO'})
        self.assertFalse(success)
        self.assertEqual(message, 'Course already exists')

        SecretaryService.create_subject(self.tenant.id, {'name': 'Educação Física'})
        success, _, message = SecretaryService.create_subject(self.tenant.id, {'name': 'EDUCAÇÃO FÍSICA'})
        self.assertFalse(success)
        self.assertEqual(message, 'Subject already exists')

        success, period, _ = SecretaryService.create_academic_period(
            self.tenant.id, {'name': '1º Bimestre', 'start_date': '2025-02-03'}
        )
        self.assertTrue(success)
        self.assertEqual(period.start_date.month, 2)

    def test_delete_class_with_active_students_refused(self):
        self.create_student(self.tenant, school_class=self.school_class)

        success, message = SecretaryService.delete_class(self.tenant.id, self.school_class.id)

        self.assertFalse(success)
        self.assertEqual(message, 'Class still has active students')

    def test_delete_class_keeps_inactive_students(self):
        student = self.create_student(self.tenant, school_class=self.school_class, status=Student.STATUS_INACTIVE)

        success, _ = SecretaryService.delete_class(self.tenant.id, self.school_class.id)

        self.assertTrue(success)
        db.session.expire_all()
        self.assertIsNone(db.session.get(Student, student.id).class_id)

    def test_create_teacher_with_login(self):
        """Test teacher, assignments and a recoverable login are created together"""
        success, employee, _, credentials = SecretaryService.create_teacher(
            self.tenant.id,
            {'full_name': 'Paulo Professor', 'base_salary': '3500.00', 'hire_date': '2025-01-15',
             'email': 'Paulo@Escola.test'},
            [{'class_id': self.school_class.id, 'course_id': self.course.id}],
            create_login=True
        )

        self.assertTrue(success)
        self.assertTrue(employee.is_teacher)
        self.assertEqual(employee.assignments.count(), 1)
        self.assertEqual(credentials['email'], 'paulo@escola.test')

        user = User.query.filter_by(email='paulo@escola.test').one()
        self.assertEqual(user.role, User.ROLE_TEACHER)
        self.assertEqual(user.employee_id, employee.id)
        self.assertTrue(user.check_password(credentials['password']))
        self.assertEqual(user.get_decrypted_password(), credentials['password'])

    def test_create_teacher_rolls_back_on_bad_assignment(self):
        other_course = self.create_course(self.tenant, '9º Ano')

        success, employee, message, _ = SecretaryService.create_teacher(
            self.tenant.id,
            {'full_name': 'Paulo Professor', 'base_salary': '3500.00', 'hire_date': '2025-01-15'},
            [{'class_id': self.school_class.id, 'course_id': other_course.id}]
        )

        self.assertFalse(success)
        self.assertIsNone(employee)
        self.assertIn('is not taught in class', message)
        self.assertEqual(Employee.query.count(), 0)
        self.assertEqual(TeacherAssignment.query.count(), 0)

    def test_create_teacher_requires_salary_and_hire_date(self):
        success, _, message, _ = SecretaryService.create_teacher(
            self.tenant.id, {'full_name': 'Paulo Professor', 'base_salary': '3500.00'}
        )
        self.assertFalse(success)
        self.assertEqual(message, 'Hire date is required')

        success, _, _, _ = SecretaryService.create_teacher(
            self.tenant.id, {'full_name': 'Paulo Professor', 'hire_date': '2025-01-15'}
        )
        self.assertFalse(success)

    def test_assign_and_remove(self):
        teacher = self.create_employee(self.tenant, 'Paulo Professor', is_teacher=True)
        link = {'class_id': self.school_class.id}

        self.assertTrue(SecretaryService.assign_teacher(self.tenant.id, teacher.id, link)[0])
        success, message = SecretaryService.assign_teacher(self.tenant.id, teacher.id, link)
        self.assertFalse(success)
        self.assertEqual(message, 'Assignment already exists')

        assignment = teacher.assignments.first()
        other = self.create_tenant('Outra Escola')
        self.assertFalse(SecretaryService.remove_assignment(other.id, assignment.id)[0])
        self.assertTrue(SecretaryService.remove_assignment(self.tenant.id, assignment.id)[0])
        self.assertEqual(TeacherAssignment.query.count(), 0)

    def test_delete_course_removes_links(self):
        teacher = self.create_employee(self.tenant, 'Paulo Professor', is_teacher=True)
        SecretaryService.assign_teacher(self.tenant.id, teacher.id,
                                        {'class_id': self.school_class.id, 'course_id': self.course.id})

        success, _ = SecretaryService.delete_course(self.tenant.id, self.course.id)

        self.assertTrue(success)
        db.session.expire_all()
        self.assertEqual(self.school_class.courses, [])
        self.assertEqual(TeacherAssignment.query.count(), 0)

    def test_dashboard_stats(self):
        self.create_student(self.tenant, school_class=self.school_class)
        self.create_student(self.tenant, status=Student.STATUS_PRE_ENROLLED)

        stats = SecretaryService.get_dashboard_stats(self.tenant.id)

        self.assertEqual(stats['active_students'], 1)
        self.assertEqual(stats['pre_enrolled'], 1)
        self.assertEqual(stats['total_classes'], 1)
        self.assertEqual(sum(m['count'] for m in stats['monthly_enrollments']), 2)

if __name__ == '__main__':
    unittest.main()

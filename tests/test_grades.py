"""
Tests for grade entry selection, grade submission and the academic summary
"""

import unittest
from datetime import date

from database import db
from models.academic import TeacherAssignment
from models.grades import Grade
from models.user import User
from services.grade_service import (
    GradeEntrySelection, GradeEntryService, AcademicSummaryService, STATUS_APPROVED, STATUS_FAILED
)
from tests.base_test import BaseTestCase

class TestGradeEntrySelection(unittest.TestCase):

    def test_class_change_resets_course_and_period(self):
        selection = GradeEntrySelection()
        selection.select_class(1, requires_course=True, student_ids=[10])
        selection.select_course(5)
        selection.select_period(7)

        selection.select_class(2)

        self.assertIsNone(selection.course_id)
        self.assertIsNone(selection.period_id)

    def test_course_change_resets_period(self):
        selection = GradeEntrySelection()
        selection.select_class(1, requires_course=True, student_ids=[10])
        selection.select_course(5)
        selection.select_period(7)

        selection.select_course(6)

        self.assertEqual(selection.class_id, 1)
        self.assertIsNone(selection.period_id)

    def test_period_needs_course_when_class_has_courses(self):
        selection = GradeEntrySelection()
        with self.assertRaises(ValueError):
            selection.select_period(7)

        selection.select_class(1, requires_course=True, student_ids=[10])
        with self.assertRaises(ValueError):
            selection.select_period(7)

    def test_is_ready(self):
        """Test the form is ready only with every level and students"""
        selection = GradeEntrySelection()
        selection.select_class(1, student_ids=[10])
        selection.select_period(7)
        self.assertFalse(selection.is_ready)

        selection.subject_name = 'Matemática'
        self.assertTrue(selection.is_ready)

        selection.select_class(1, student_ids=[])
        selection.select_period(7)
        self.assertFalse(selection.is_ready)

class TestGradeEntryService(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant()
        self.course_1 = self.create_course(self.tenant, '1º Ano')
        self.course_2 = self.create_course(self.tenant, '2º Ano')
        self.class_a = self.create_class(self.tenant, 'Turma A', courses=[self.course_1, self.course_2])
        self.class_b = self.create_class(self.tenant, 'Turma B')
        self.p1 = self.create_period(self.tenant, '1º Bimestre', date(2025, 2, 1))
        self.p2 = self.create_period(self.tenant, '2º Bimestre', date(2025, 5, 1))
        self.ana = self.create_student(self.tenant, 'Ana', self.class_a)
        self.bruno = self.create_student(self.tenant, 'Bruno', self.class_a)
        self.teacher_employee = self.create_employee(self.tenant, 'Paulo Professor', is_teacher=True)
        self.teacher = self.create_user(self.tenant, role=User.ROLE_TEACHER, employee=self.teacher_employee)

    def _assign(self, school_class, course=None, period=None):
        db.session.add(TeacherAssignment(
            employee_id=self.teacher_employee.id,
            class_id=school_class.id,
            course_id=course.id if course else None,
            academic_period_id=period.id if period else None
        ))
        db.session.commit()

    def _ready_selection(self, course=None, period=None):
        selection = GradeEntrySelection()
        GradeEntryService.open_class(self.teacher, selection, self.class_a.id)
        GradeEntryService.choose_course(self.teacher, selection, (course or self.course_1).id)
        GradeEntryService.choose_period(self.teacher, selection, (period or self.p1).id)
        selection.subject_name = 'Matemática'
        selection.assessment_type = 'Prova'
        selection.date_recorded = '2025-03-15'
        return selection

    def test_teacher_sees_each_assigned_class_once(self):
        self._assign(self.class_a, self.course_1)
        self._assign(self.class_a, self.course_2)

        classes = GradeEntryService.available_classes(self.teacher)

        self.assertEqual([c.id for c in classes], [self.class_a.id])
        self.assertFalse(GradeEntryService.can_access_class(self.teacher, self.class_b.id))

    def test_admin_sees_all_classes(self):
        admin = self.create_user(self.tenant)
        names = [c.name for c in GradeEntryService.available_classes(admin)]
        self.assertEqual(names, ['Turma A', 'Turma B'])

    def test_teacher_without_employee_sees_nothing(self):
        orphan = self.create_user(self.tenant, role=User.ROLE_TEACHER)
        self.assertEqual(GradeEntryService.available_classes(orphan), [])

    def test_courses_limited_to_assignments(self):
        self._assign(self.class_a, self.course_2)
        courses = GradeEntryService.available_courses(self.teacher, self.class_a.id)
        self.assertEqual([c.id for c in courses], [self.course_2.id])

    def test_assignment_without_course_allows_all_courses(self):
        self._assign(self.class_a)
        courses = GradeEntryService.available_courses(self.teacher, self.class_a.id)
        self.assertEqual(len(courses), 2)

    def test_periods_follow_assignments(self):
        """Test period access per course, and all periods when none is set"""
        self._assign(self.class_a, self.course_1, self.p2)
        self._assign(self.class_a, self.course_2)

        course_1_periods = GradeEntryService.available_periods(self.teacher, self.class_a.id, self.course_1.id)
        course_2_periods = GradeEntryService.available_periods(self.teacher, self.class_a.id, self.course_2.id)

        self.assertEqual([p.id for p in course_1_periods], [self.p2.id])
        self.assertEqual([p.id for p in course_2_periods], [self.p1.id, self.p2.id])

    def test_open_class_refused_without_assignment(self):
        selection = GradeEntrySelection()
        success, _ = GradeEntryService.open_class(self.teacher, selection, self.class_b.id)
        self.assertFalse(success)
        self.assertIsNone(selection.class_id)

    def test_open_class_loads_students(self):
        self._assign(self.class_a)
        selection = GradeEntrySelection()

        success, _ = GradeEntryService.open_class(self.teacher, selection, self.class_a.id)

        self.assertTrue(success)
        self.assertTrue(selection.requires_course)
        self.assertEqual(sorted(selection.student_ids), sorted([self.ana.id, self.bruno.id]))

    def test_choose_period_outside_assignment_refused(self):
        self._assign(self.class_a, self.course_1, self.p1)
        selection = GradeEntrySelection()
        GradeEntryService.open_class(self.teacher, selection, self.class_a.id)
        GradeEntryService.choose_course(self.teacher, selection, self.course_1.id)

        success, _ = GradeEntryService.choose_period(self.teacher, selection, self.p2.id)

        self.assertFalse(success)
        self.assertIsNone(selection.period_id)

    def test_submit_grades_skips_empty_values(self):
        """Test blank entries are ignored and the period name is stored"""
        self._assign(self.class_a)
        selection = self._ready_selection()

        success, saved, _ = GradeEntryService.submit_grades(
            self.teacher, selection, {str(self.ana.id): '8.5', str(self.bruno.id): ''}
        )

        self.assertTrue(success)
        self.assertEqual(saved, 1)
        grade = Grade.query.one()
        self.assertEqual(grade.grade_value, 8.5)
        self.assertEqual(grade.period, '1º Bimestre')
        self.assertEqual(grade.teacher_id, self.teacher_employee.id)
        self.assertEqual(grade.course_id, self.course_1.id)
        self.assertEqual(grade.date_recorded, date(2025, 3, 15))

    def test_submit_nothing(self):
        self._assign(self.class_a)
        selection = self._ready_selection()

        success, saved, message = GradeEntryService.submit_grades(self.teacher, selection, {self.ana.id: None})

        self.assertFalse(success)
        self.assertEqual(saved, 0)
        self.assertEqual(message, 'No grades to save')

    def test_submit_out_of_range_saves_nothing(self):
        self._assign(self.class_a)
        selection = self._ready_selection()

        success, _, message = GradeEntryService.submit_grades(
            self.teacher, selection, {self.ana.id: 7, self.bruno.id: 11}
        )

        self.assertFalse(success)
        self.assertIn('Maximum grade', message)
        self.assertEqual(Grade.query.count(), 0)

    def test_submit_requires_course(self):
        self._assign(self.class_a)
        selection = GradeEntrySelection()
        GradeEntryService.open_class(self.teacher, selection, self.class_a.id)
        selection.subject_name = 'Matemática'

        success, _, message = GradeEntryService.submit_grades(self.teacher, selection, {self.ana.id: 7})

        self.assertFalse(success)
        self.assertEqual(message, 'Select the course the grades apply to')

    def test_submit_requires_employee_link(self):
        admin = self.create_user(self.tenant)
        selection = GradeEntrySelection()
        GradeEntryService.open_class(admin, selection, self.class_a.id)

        success, _, message = GradeEntryService.submit_grades(admin, selection, {self.ana.id: 7})

        self.assertFalse(success)
        self.assertEqual(message, 'Your profile is not linked to an employee record')

    def test_submit_rejects_student_outside_class(self):
        self._assign(self.class_a)
        outsider = self.create_student(self.tenant, 'Carla', self.class_b)
        selection = self._ready_selection()

        success, _, _ = GradeEntryService.submit_grades(self.teacher, selection, {outsider.id: 7})

        self.assertFalse(success)
        self.assertEqual(Grade.query.count(), 0)

class TestAcademicSummary(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant()
        self.school_class = self.create_class(self.tenant)
        self.student = self.create_student(self.tenant, 'Ana', self.school_class)
        self.teacher = self.create_employee(self.tenant, is_teacher=True)

    def _grade(self, subject, period, value):
        db.session.add(Grade(
            tenant_id=self.tenant.id, student_id=self.student.id, class_id=self.school_class.id,
            teacher_id=self.teacher.id, subject_name=subject, grade_value=value, period=period
        ))
        db.session.commit()

    def test_summary(self):
        """Test period averages, subject status and the overall result"""
        self._grade('Matemática', '1º Bimestre', 8)
        self._grade('Matemática', '1º Bimestre', 6)
        self._grade('Matemática', '2º Bimestre', 5)
        self._grade('Português', '1º Bimestre', 4)

        summary = AcademicSummaryService.calculate(self.tenant.id, self.student.id)

        math, portuguese = summary['subjects']
        self.assertEqual(math['subject'], 'Matemática')
        self.assertEqual(math['periods']['1º Bimestre'], 7.0)
        self.assertEqual(math['periods']['2º Bimestre'], 5.0)
        self.assertEqual(math['average'], 6.0)
        self.assertEqual(math['status'], STATUS_APPROVED)
        self.assertEqual(portuguese['status'], STATUS_FAILED)
        self.assertEqual(summary['overall_average'], 5.0)
        self.assertEqual(summary['status'], STATUS_FAILED)
        self.assertEqual(summary['passing_grade'], 6.0)

    def test_all_subjects_approved(self):
        self._grade('Matemática', '1º Bimestre', 9)
        self._grade('Português', '1º Bimestre', 6)

        summary = AcademicSummaryService.calculate(self.tenant.id, self.student.id)

        self.assertEqual(summary['status'], STATUS_APPROVED)
        self.assertEqual(summary['overall_average'], 7.5)

    def test_custom_passing_grade(self):
        self._grade('Matemática', '1º Bimestre', 6.5)
        summary = AcademicSummaryService.calculate(self.tenant.id, self.student.id, passing_grade=7.0)
        self.assertEqual(summary['status'], STATUS_FAILED)

    def test_no_grades(self):
        summary = AcademicSummaryService.calculate(self.tenant.id, self.student.id)
        self.assertEqual(summary['subjects'], [])
        self.assertIsNone(summary['overall_average'])
        self.assertIsNone(summary['status'])

if __name__ == '__main__':
    unittest.main()

"""
Grade service for Escola Gestão
Grade entry selection, grade submission and academic summary calculation
"""

import logging
from collections import OrderedDict
from datetime import date

from flask import current_app

from database import db
from models.academic import SchoolClass, AcademicPeriod, TeacherAssignment
from models.grades import Grade
from models.user import User
from utils.db_helpers import get_for_tenant
from utils.validators import validate_grade, validate_name, parse_date

logger = logging.getLogger(__name__)

STATUS_APPROVED = 'approved'
STATUS_FAILED = 'failed'

class GradeEntrySelection:
    """Cascading class -> course -> period selection of the grade entry form"""

    def __init__(self):
        self.class_id = None
        self.course_id = None
        self.period_id = None
        self.subject_name = None
        self.assessment_type = None
        self.date_recorded = None
        self.requires_course = False
        self.student_ids = []

    def select_class(self, class_id, requires_course=False, student_ids=None):
        """Pick a class; course and period are cleared"""
        self.class_id = class_id
        self.requires_course = requires_course
        self.student_ids = list(student_ids or [])
        self.course_id = None
        self.period_id = None

    def select_course(self, course_id):
        """Pick a course; period is cleared"""
        if self.class_id is None:
            raise ValueError("Select a class first")
        self.course_id = course_id
        self.period_id = None

    def select_period(self, period_id):
        if self.class_id is None:
            raise ValueError("Select a class first")
        if self.requires_course and self.course_id is None:
            raise ValueError("Select a course first")
        self.period_id = period_id

    @property
    def is_ready(self):
        """All required levels resolved and the class has students"""
        return bool(
            self.class_id is not None
            and (self.course_id is not None or not self.requires_course)
            and self.period_id is not None
            and self.subject_name
            and self.student_ids
        )

    def to_dict(self):
        return {
            'class_id': self.class_id,
            'course_id': self.course_id,
            'period_id': self.period_id,
            'subject_name': self.subject_name,
            'assessment_type': self.assessment_type,
            'requires_course': self.requires_course,
            'student_ids': list(self.student_ids),
            'is_ready': self.is_ready
        }

class GradeEntryService:
    """Grade entry service class"""

    @staticmethod
    def _teacher_assignments(user, class_id=None):
        if not user.employee_id:
            return []
        query = TeacherAssignment.query.filter_by(employee_id=user.employee_id)
        if class_id is not None:
            query = query.filter_by(class_id=class_id)
        return query.order_by(TeacherAssignment.id).all()

    @staticmethod
    def available_classes(user):
        """Classes the user may enter grades for"""
        if user.is_teacher:
            if not user.employee:
                return []
            return user.employee.get_assigned_classes()

        if user.role in (User.ROLE_ADMIN, User.ROLE_SECRETARY):
            return SchoolClass.query.filter_by(tenant_id=user.tenant_id).order_by(SchoolClass.name).all()
        return []

    @staticmethod
    def can_access_class(user, class_id):
        return any(c.id == class_id for c in GradeEntryService.available_classes(user))

    @staticmethod
    def available_courses(user, class_id):
        """Courses of the class; teachers limited to assigned ones unless assigned to all"""
        school_class = get_for_tenant(SchoolClass, user.tenant_id, class_id)
        if not school_class:
            return []

        courses = list(school_class.courses)
        if not user.is_teacher:
            return courses

        assignments = GradeEntryService._teacher_assignments(user, class_id)
        if any(a.course_id is None for a in assignments):
            return courses
        allowed = {a.course_id for a in assignments}
        return [c for c in courses if c.id in allowed]

    @staticmethod
    def available_periods(user, class_id, course_id=None):
        """Periods the user may grade for this class and course"""
        periods = AcademicPeriod.query.filter_by(tenant_id=user.tenant_id)\
            .order_by(AcademicPeriod.start_date, AcademicPeriod.name).all()
        if not user.is_teacher:
            return periods if get_for_tenant(SchoolClass, user.tenant_id, class_id) else []

        allowed = set()
        for assignment in GradeEntryService._teacher_assignments(user, class_id):
            if assignment.course_id is not None and assignment.course_id != course_id:
                continue
            if assignment.academic_period_id is None:
                return periods
            allowed.add(assignment.academic_period_id)
        return [p for p in periods if p.id in allowed]

    @staticmethod
    def open_class(user, selection, class_id):
        """Apply a class choice to the selection, loading its students"""
        if not GradeEntryService.can_access_class(user, class_id):
            return False, "You are not allowed to enter grades for this class"

        school_class = db.session.get(SchoolClass, class_id)
        students = school_class.get_active_students()
        selection.select_class(
            class_id,
            requires_course=len(school_class.courses) > 0,
            student_ids=[s.id for s in students]
        )
        if not students:
            return False, "No active students in this class"
        return True, "Class selected"

    @staticmethod
    def choose_course(user, selection, course_id):
        if course_id not in {c.id for c in GradeEntryService.available_courses(user, selection.class_id)}:
            return False, "Course not available for this class"
        selection.select_course(course_id)
        return True, "Course selected"

    @staticmethod
    def choose_period(user, selection, period_id):
        allowed = GradeEntryService.available_periods(user, selection.class_id, selection.course_id)
        if period_id not in {p.id for p in allowed}:
            return False, "You are not allowed to enter grades for this period"
        selection.select_period(period_id)
        return True, "Period selected"

    @staticmethod
    def submit_grades(user, selection, grades):
        """Save grades for the selection; grades maps student id to value

        Empty values are skipped. Returns (success, saved_count, message).
        """
        try:
            if user.role not in (User.ROLE_TEACHER, User.ROLE_ADMIN, User.ROLE_SECRETARY):
                return False, 0, "Your profile is not allowed to enter grades"

            if not user.employee_id:
                return False, 0, "Your profile is not linked to an employee record"

            if selection.requires_course and selection.course_id is None:
                return False, 0, "Select the course the grades apply to"

            if not selection.is_ready:
                return False, 0, "Complete the class, period and subject selection"

            is_valid, message = validate_name(selection.subject_name, "Subject", min_length=1)
            if not is_valid:
                return False, 0, message

            if not GradeEntryService.can_access_class(user, selection.class_id):
                return False, 0, "You are not allowed to enter grades for this class"

            allowed = GradeEntryService.available_periods(user, selection.class_id, selection.course_id)
            period = next((p for p in allowed if p.id == selection.period_id), None)
            if period is None:
                return False, 0, "You are not allowed to enter grades for this period"

            max_grade = current_app.config.get('MAX_GRADE', 10.0)
            recorded_on = parse_date(selection.date_recorded) or date.today()
            rows = []
            for student_id, value in (grades or {}).items():
                if value is None or (isinstance(value, str) and not value.strip()):
                    continue
                student_id = int(student_id)
                if student_id not in selection.student_ids:
                    return False, 0, f"Student {student_id} is not in the selected class"

                is_valid, message = validate_grade(value, max_grade)
                if not is_valid:
                    return False, 0, message

                rows.append(Grade(
                    tenant_id=user.tenant_id,
                    student_id=student_id,
                    class_id=selection.class_id,
                    course_id=selection.course_id,
                    teacher_id=user.employee_id,
                    subject_name=selection.subject_name.strip(),
                    grade_value=float(value),
                    assessment_type=selection.assessment_type,
                    period=period.name,
                    date_recorded=recorded_on
                ))

            if not rows:
                return False, 0, "No grades to save"

            db.session.add_all(rows)
            db.session.commit()

            logger.info("%s grades saved by user %s for class %s", len(rows), user.id, selection.class_id)
            return True, len(rows), "Grades saved successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error saving grades: %s", e)
            return False, 0, f"Error saving grades: {str(e)}"

    @staticmethod
    def get_student_grades(tenant_id, student_id):
        return Grade.query.filter_by(tenant_id=tenant_id, student_id=student_id)\
            .order_by(Grade.period, Grade.subject_name, Grade.date_recorded).all()

class AcademicSummaryService:
    """Academic summary (boletim) calculation"""

    @staticmethod
    def _average(values):
        return round(sum(values) / len(values), 2) if values else None

    @staticmethod
    def calculate(tenant_id, student_id, passing_grade=None):
        """Per-subject period averages, final averages and approval status"""
        if passing_grade is None:
            passing_grade = current_app.config.get('PASSING_GRADE', 6.0)

        grades = GradeEntryService.get_student_grades(tenant_id, student_id)
        subjects = OrderedDict()
        for grade in sorted(grades, key=lambda g: g.subject_name.lower()):
            periods = subjects.setdefault(grade.subject_name, OrderedDict())
            periods.setdefault(grade.period, []).append(grade.grade_value)

        subject_rows = []
        for subject_name, periods in subjects.items():
            period_averages = OrderedDict(
                (period, AcademicSummaryService._average(values)) for period, values in periods.items()
            )
            average = AcademicSummaryService._average(list(period_averages.values()))
            subject_rows.append({
                'subject': subject_name,
                'periods': period_averages,
                'average': average,
                'status': STATUS_APPROVED if average >= passing_grade else STATUS_FAILED
            })

        overall = AcademicSummaryService._average([row['average'] for row in subject_rows])
        if not subject_rows:
            status = None
        elif all(row['status'] == STATUS_APPROVED for row in subject_rows):
            status = STATUS_APPROVED
        else:
            status = STATUS_FAILED

        return {
            'student_id': student_id,
            'passing_grade': passing_grade,
            'subjects': subject_rows,
            'overall_average': overall,
            'status': status
        }

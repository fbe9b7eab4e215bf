"""
Secretary service for Escola Gestão
Business logic for student records, classes, courses and teaching staff
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import extract, func

from database import db, fold_name
from models.academic import (
    SchoolClass, Course, Subject, AssessmentType, AcademicPeriod, TeacherAssignment, class_courses
)
from models.student import Student, Guardian, StudentGuardian
from models.payroll import Employee
from models.user import User
from services.auth_service import AuthService
from services.tenant_service import TenantService
from utils.db_helpers import (
    get_for_tenant, paginate_query, safe_add_and_commit, safe_update_and_commit, safe_delete_and_commit
)
from utils.validators import (
    validate_name, validate_registration_code, validate_choice, validate_year,
    validate_positive_amount, validate_email, parse_date
)

logger = logging.getLogger(__name__)

class SecretaryService:
    """Secretary service class"""

    # Students

    @staticmethod
    def generate_registration_code(tenant_id, year=None):
        """Next YYYYSSS registration code, one past the highest code of the year"""
        year = year or date.today().year
        prefix = str(year)
        last = (
            Student.query
            .filter(Student.tenant_id == tenant_id, Student.registration_code.like(f'{prefix}%'))
            .order_by(Student.registration_code.desc())
            .first()
        )

        sequence = 1
        if last is not None:
            suffix = last.registration_code[len(prefix):]
            if suffix.isdigit():
                sequence = int(suffix) + 1

        code = f'{prefix}{sequence:03d}'
        while Student.query.filter_by(tenant_id=tenant_id, registration_code=code).first():
            sequence += 1
            code = f'{prefix}{sequence:03d}'
        return code

    @staticmethod
    def _apply_student_fields(student, data):
        for field in Student.PROFILE_FIELDS:
            if field in data:
                value = data[field]
                if field == 'birth_date':
                    value = parse_date(value)
                setattr(student, field, value or None)

    @staticmethod
    def _validate_student_data(tenant_id, data, partial=False):
        if not partial or 'full_name' in data:
            is_valid, message = validate_name(data.get('full_name'), "Full name", min_length=3)
            if not is_valid:
                return False, message

        if data.get('status') is not None:
            is_valid, message = validate_choice(data['status'], Student.STATUSES, "Status")
            if not is_valid:
                return False, message

        if data.get('birth_date') and parse_date(data['birth_date']) is None:
            return False, "Birth date must be in YYYY-MM-DD format"

        if data.get('class_id') is not None and not get_for_tenant(SchoolClass, tenant_id, data['class_id']):
            return False, "Class not found"

        return True, "Valid student"

    @staticmethod
    def add_student(tenant_id, data):
        """Add single student; returns (success, student, message)"""
        try:
            is_valid, message = SecretaryService._validate_student_data(tenant_id, data)
            if not is_valid:
                return False, None, message

            code = (data.get('registration_code') or '').strip()
            if code:
                is_valid, message = validate_registration_code(code)
                if not is_valid:
                    return False, None, message
                if Student.query.filter_by(tenant_id=tenant_id, registration_code=code).first():
                    return False, None, "Registration code already exists"
            else:
                code = SecretaryService.generate_registration_code(tenant_id)

            student = Student(
                tenant_id=tenant_id,
                registration_code=code,
                full_name=data['full_name'].strip(),
                status=data.get('status') or Student.STATUS_ACTIVE,
                class_id=data.get('class_id')
            )
            SecretaryService._apply_student_fields(student, data)

            success, message = safe_add_and_commit(student)
            if not success:
                return False, None, message

            logger.info("Student %s added to tenant %s", student.registration_code, tenant_id)
            return True, student, "Student added successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error adding student: %s", e)
            return False, None, f"Error adding student: {str(e)}"

    @staticmethod
    def create_student_with_guardian(tenant_id, student_data, guardian_data):
        """Student, guardian and their link written in one commit"""
        try:
            is_valid, message = SecretaryService._validate_student_data(tenant_id, student_data)
            if not is_valid:
                return False, None, message

            is_valid, message = validate_name(guardian_data.get('full_name'), "Guardian name", min_length=3)
            if not is_valid:
                return False, None, message

            if guardian_data.get('email'):
                is_valid, message = validate_email(guardian_data['email'])
                if not is_valid:
                    return False, None, message

            code = (student_data.get('registration_code') or '').strip()
            if code:
                is_valid, message = validate_registration_code(code)
                if not is_valid:
                    return False, None, message
                if Student.query.filter_by(tenant_id=tenant_id, registration_code=code).first():
                    return False, None, "Registration code already exists"

            student = Student(
                tenant_id=tenant_id,
                registration_code=code or SecretaryService.generate_registration_code(tenant_id),
                full_name=student_data['full_name'].strip(),
                status=student_data.get('status') or Student.STATUS_ACTIVE,
                class_id=student_data.get('class_id')
            )
            SecretaryService._apply_student_fields(student, student_data)

            guardian = Guardian(
                tenant_id=tenant_id,
                full_name=guardian_data['full_name'].strip(),
                relationship_type=guardian_data.get('relationship_type'),
                cpf=guardian_data.get('cpf'),
                phone=guardian_data.get('phone'),
                email=guardian_data.get('email')
            )
            db.session.add_all([student, guardian])
            db.session.flush()
            db.session.add(StudentGuardian(student_id=student.id, guardian_id=guardian.id))
            db.session.commit()

            logger.info("Student %s created with guardian %s", student.id, guardian.id)
            return True, student, "Student and guardian created successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error creating student with guardian: %s", e)
            return False, None, f"Error creating student: {str(e)}"

    @staticmethod
    def pre_enroll(tenant_id, data):
        """Public pre-enrollment form: a pre-enrolled student with a generated code

        Name, birth date and phone are required. Class, status and code are
        never taken from the form.
        """
        try:
            tenant = TenantService.get_tenant(tenant_id)
            if tenant is None:
                return False, None, "School not found"
            if TenantService.is_access_blocked(tenant):
                return False, None, "This school is not accepting pre-enrollments"

            if not all((data.get('full_name'), data.get('birth_date'), data.get('phone'))):
                return False, None, "Full name, birth date and phone are required"

            form = {k: v for k, v in data.items() if k not in ('class_id', 'status', 'registration_code')}
            is_valid, message = SecretaryService._validate_student_data(tenant.id, form)
            if not is_valid:
                return False, None, message

            student = Student(
                tenant_id=tenant.id,
                registration_code=SecretaryService.generate_registration_code(tenant.id),
                full_name=form['full_name'].strip(),
                status=Student.STATUS_PRE_ENROLLED
            )
            SecretaryService._apply_student_fields(student, form)

            success, message = safe_add_and_commit(student)
            if not success:
                return False, None, message

            logger.info("Pre-enrollment %s received for tenant %s", student.registration_code, tenant.id)
            return True, student, "Pre-enrollment received"

        except Exception as e:
            db.session.rollback()
            logger.error("Error in pre-enrollment for tenant %s: %s", tenant_id, e)
            return False, None, f"Error in pre-enrollment: {str(e)}"

    @staticmethod
    def update_student(tenant_id, student_id, data):
        """Update student fields"""
        try:
            student = get_for_tenant(Student, tenant_id, student_id)
            if not student:
                return False, "Student not found"

            is_valid, message = SecretaryService._validate_student_data(tenant_id, data, partial=True)
            if not is_valid:
                return False, message

            if 'full_name' in data:
                student.full_name = data['full_name'].strip()
            if data.get('status'):
                student.status = data['status']
            if 'class_id' in data:
                student.class_id = data['class_id']
            SecretaryService._apply_student_fields(student, data)

            return safe_update_and_commit()

        except Exception as e:
            db.session.rollback()
            return False, f"Error updating student: {str(e)}"

    @staticmethod
    def deactivate_student(tenant_id, student_id):
        """Mark a student inactive; records are kept"""
        student = get_for_tenant(Student, tenant_id, student_id)
        if not student:
            return False, "Student not found"
        student.status = Student.STATUS_INACTIVE
        return safe_update_and_commit()

    @staticmethod
    def get_students(tenant_id, status=None, class_id=None, search=None, page=1, per_page=20):
        """Students filtered by status, class and name or code search"""
        query = Student.query.filter_by(tenant_id=tenant_id)
        if status:
            query = query.filter_by(status=status)
        if class_id:
            query = query.filter_by(class_id=class_id)
        if search:
            term = f'%{search.strip()}%'
            query = query.filter(db.or_(Student.full_name.ilike(term), Student.registration_code.ilike(term)))
        return paginate_query(query.order_by(Student.full_name), page, per_page)

    # Classes and academic structure

    @staticmethod
    def create_class(tenant_id, data):
        """Create class with optional course links"""
        try:
            is_valid, message = validate_name(data.get('name'), "Class name")
            if not is_valid:
                return False, None, message

            is_valid, message = validate_year(data.get('school_year'))
            if not is_valid:
                return False, None, message

            school_class = SchoolClass(
                tenant_id=tenant_id,
                name=data['name'].strip(),
                school_year=int(data['school_year']),
                shift=data.get('shift'),
                room=data.get('room')
            )
            for course_id in data.get('course_ids') or []:
                course = get_for_tenant(Course, tenant_id, int(course_id))
                if not course:
                    return False, None, f"Course {course_id} not found"
                school_class.courses.append(course)

            db.session.add(school_class)
            db.session.commit()
            return True, school_class, "Class created successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error creating class: %s", e)
            return False, None, f"Error creating class: {str(e)}"

    @staticmethod
    def update_class(tenant_id, class_id, data):
        """Update class fields and replace course links when given"""
        try:
            school_class = get_for_tenant(SchoolClass, tenant_id, class_id)
            if not school_class:
                return False, "Class not found"

            if 'name' in data:
                is_valid, message = validate_name(data.get('name'), "Class name")
                if not is_valid:
                    return False, message
                school_class.name = data['name'].strip()
            if 'school_year' in data:
                is_valid, message = validate_year(data.get('school_year'))
                if not is_valid:
                    return False, message
                school_class.school_year = int(data['school_year'])
            for field in ('shift', 'room'):
                if field in data:
                    setattr(school_class, field, data[field])

            if 'course_ids' in data:
                courses = []
                for course_id in data['course_ids'] or []:
                    course = get_for_tenant(Course, tenant_id, int(course_id))
                    if not course:
                        return False, f"Course {course_id} not found"
                    courses.append(course)
                school_class.courses = courses

            return safe_update_and_commit()

        except Exception as e:
            db.session.rollback()
            return False, f"Error updating class: {str(e)}"

    @staticmethod
    def delete_class(tenant_id, class_id):
        """Delete a class that has no active students"""
        try:
            school_class = get_for_tenant(SchoolClass, tenant_id, class_id)
            if not school_class:
                return False, "Class not found"

            if school_class.get_active_students_count() > 0:
                return False, "Class still has active students"

            Student.query.filter_by(class_id=school_class.id).update({Student.class_id: None}, synchronize_session=False)
            db.session.delete(school_class)
            db.session.commit()
            return True, "Class deleted successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error deleting class: {str(e)}"

    @staticmethod
    def get_classes(tenant_id):
        return SchoolClass.query.filter_by(tenant_id=tenant_id).order_by(SchoolClass.name).all()

    @staticmethod
    def _create_named(model, tenant_id, name, label, **extra):
        is_valid, message = validate_name(name, label)
        if not is_valid:
            return False, None, message

        name = name.strip()
        exists = model.query.filter_by(tenant_id=tenant_id, name_key=fold_name(name)).first()
        if exists:
            return False, None, f"{label} already exists"

        obj = model(tenant_id=tenant_id, name=name, **extra)
        success, message = safe_add_and_commit(obj)
        return success, obj if success else None, message

    @staticmethod
    def create_course(tenant_id, data):
        return SecretaryService._create_named(
            Course, tenant_id, data.get('name'), "Course",
            level=data.get('level'), description=data.get('description')
        )

    @staticmethod
    def create_subject(tenant_id, data):
        return SecretaryService._create_named(Subject, tenant_id, data.get('name'), "Subject")

    @staticmethod
    def create_assessment_type(tenant_id, data):
        return SecretaryService._create_named(AssessmentType, tenant_id, data.get('name'), "Assessment type")

    @staticmethod
    def create_academic_period(tenant_id, data):
        return SecretaryService._create_named(
            AcademicPeriod, tenant_id, data.get('name'), "Academic period",
            start_date=parse_date(data.get('start_date')), end_date=parse_date(data.get('end_date'))
        )

    @staticmethod
    def delete_course(tenant_id, course_id):
        """Delete a course not referenced by grades"""
        from models.grades import Grade
        course = get_for_tenant(Course, tenant_id, course_id)
        if not course:
            return False, "Course not found"
        if Grade.query.filter_by(course_id=course.id).first():
            return False, "Course has recorded grades and cannot be deleted"
        try:
            TeacherAssignment.query.filter_by(course_id=course.id).delete(synchronize_session=False)
            db.session.execute(class_courses.delete().where(class_courses.c.course_id == course.id))
            db.session.delete(course)
            db.session.commit()
            return True, "Course deleted successfully"
        except Exception as e:
            db.session.rollback()
            return False, f"Error deleting course: {str(e)}"

    # Teachers

    @staticmethod
    def create_teacher(tenant_id, data, classes_to_teach=None, create_login=False):
        """Teacher employee, its assignments and optional login in one transaction

        Returns (success, employee, message, credentials) where credentials is
        {'email', 'password'} when a login was created.
        """
        try:
            is_valid, message = validate_name(data.get('full_name'), "Full name", min_length=3)
            if not is_valid:
                return False, None, message, None

            hire_date = parse_date(data.get('hire_date'))
            if hire_date is None:
                return False, None, "Hire date is required", None

            is_valid, message = validate_positive_amount(data.get('base_salary'), "Base salary")
            if not is_valid:
                return False, None, message, None

            if create_login:
                is_valid, message = validate_email(data.get('email'))
                if not is_valid:
                    return False, None, message, None
                if User.query.filter(func.lower(User.email) == data['email'].strip().lower()).first():
                    return False, None, "Email already registered", None

            employee = Employee(
                tenant_id=tenant_id,
                full_name=data['full_name'].strip(),
                role_id=data.get('role_id'),
                base_salary=Decimal(str(data['base_salary'])),
                hire_date=hire_date,
                department=data.get('department'),
                contract_type=data.get('contract_type'),
                email=data.get('email'),
                phone=data.get('phone'),
                is_teacher=True,
                status=Employee.STATUS_ACTIVE
            )
            db.session.add(employee)
            db.session.flush()

            for link in classes_to_teach or []:
                success, message = SecretaryService._build_assignment(tenant_id, employee, link)
                if not success:
                    db.session.rollback()
                    return False, None, message, None

            credentials = None
            if create_login:
                password = AuthService.generate_password()
                user = User(
                    tenant_id=tenant_id,
                    email=data['email'].strip().lower(),
                    full_name=employee.full_name,
                    role=User.ROLE_TEACHER,
                    employee_id=employee.id
                )
                user.set_password(password, keep_copy=True)
                db.session.add(user)
                credentials = {'email': user.email, 'password': password}

            db.session.commit()
            logger.info("Teacher %s created for tenant %s", employee.id, tenant_id)
            return True, employee, "Teacher created successfully", credentials

        except Exception as e:
            db.session.rollback()
            logger.error("Error creating teacher: %s", e)
            return False, None, f"Error creating teacher: {str(e)}", None

    @staticmethod
    def _build_assignment(tenant_id, employee, link):
        school_class = get_for_tenant(SchoolClass, tenant_id, link.get('class_id'))
        if not school_class:
            return False, f"Class {link.get('class_id')} not found"

        course_id = link.get('course_id')
        if course_id is not None:
            course = get_for_tenant(Course, tenant_id, course_id)
            if not course or course not in school_class.courses:
                return False, f"Course {course_id} is not taught in class {school_class.name}"

        period_id = link.get('academic_period_id')
        if period_id is not None and not get_for_tenant(AcademicPeriod, tenant_id, period_id):
            return False, f"Academic period {period_id} not found"

        db.session.add(TeacherAssignment(
            employee_id=employee.id,
            class_id=school_class.id,
            course_id=course_id,
            academic_period_id=period_id
        ))
        return True, "Assignment added"

    @staticmethod
    def assign_teacher(tenant_id, employee_id, link):
        """Add a single class/course/period assignment to a teacher"""
        try:
            employee = get_for_tenant(Employee, tenant_id, employee_id)
            if not employee or not employee.is_teacher:
                return False, "Teacher not found"

            exists = TeacherAssignment.query.filter_by(
                employee_id=employee.id,
                class_id=link.get('class_id'),
                course_id=link.get('course_id'),
                academic_period_id=link.get('academic_period_id')
            ).first()
            if exists:
                return False, "Assignment already exists"

            success, message = SecretaryService._build_assignment(tenant_id, employee, link)
            if not success:
                db.session.rollback()
                return False, message
            db.session.commit()
            return True, "Assignment added successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error assigning teacher: {str(e)}"

    @staticmethod
    def remove_assignment(tenant_id, assignment_id):
        assignment = db.session.get(TeacherAssignment, assignment_id)
        if not assignment or assignment.employee.tenant_id != tenant_id:
            return False, "Assignment not found"
        return safe_delete_and_commit(assignment)

    @staticmethod
    def get_teachers(tenant_id):
        return Employee.query.filter_by(tenant_id=tenant_id, is_teacher=True)\
            .order_by(Employee.full_name).all()

    # Dashboard

    @staticmethod
    def get_dashboard_stats(tenant_id, year=None):
        """Overview figures for the school dashboard"""
        year = year or date.today().year
        monthly = dict(
            db.session.query(extract('month', Student.created_at), func.count(Student.id))
            .filter(Student.tenant_id == tenant_id, extract('year', Student.created_at) == year)
            .group_by(extract('month', Student.created_at))
            .all()
        )
        return {
            'active_students': Student.query.filter_by(tenant_id=tenant_id, status=Student.STATUS_ACTIVE).count(),
            'pre_enrolled': Student.query.filter_by(tenant_id=tenant_id, status=Student.STATUS_PRE_ENROLLED).count(),
            'total_classes': SchoolClass.query.filter_by(tenant_id=tenant_id).count(),
            'total_teachers': Employee.query.filter_by(
                tenant_id=tenant_id, is_teacher=True, status=Employee.STATUS_ACTIVE).count(),
            'monthly_enrollments': [
                {'month': month, 'count': int(monthly.get(month, 0))} for month in range(1, 13)
            ],
            'generated_at': datetime.utcnow().isoformat()
        }

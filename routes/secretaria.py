"""
Secretary routes for Escola Gestão
Students, guardians, classes, courses and teaching staff
"""

from flask import Blueprint, request, jsonify, g

from models.user import User
from models.student import Student
from models.academic import Course, Subject, AssessmentType, AcademicPeriod
from routes.auth import login_required, get_json_data
from services.secretary_service import SecretaryService
from utils.db_helpers import get_for_tenant

secretaria_bp = Blueprint('secretaria', __name__)

STAFF_ROLES = (User.ROLE_ADMIN, User.ROLE_SECRETARY)

def _result(success, message, status=400, **extra):
    body = {'success': success, 'message': message}
    body.update(extra)
    return jsonify(body), (200 if success else status)

@secretaria_bp.route('/dashboard')
@login_required(*STAFF_ROLES)
def dashboard():
    """School overview figures"""
    stats = SecretaryService.get_dashboard_stats(g.tenant_id, request.args.get('year', type=int))
    return jsonify({'success': True, 'stats': stats})

# Students

@secretaria_bp.route('/students')
@login_required(*STAFF_ROLES)
def students():
    """Student listing with filters"""
    page = SecretaryService.get_students(
        g.tenant_id,
        status=request.args.get('status'),
        class_id=request.args.get('class_id', type=int),
        search=request.args.get('search'),
        page=request.args.get('page', 1, type=int),
        per_page=request.args.get('per_page', 20, type=int)
    )
    page['items'] = [s.to_dict() for s in page['items']]
    return jsonify({'success': True, **page})

@secretaria_bp.route('/students', methods=['POST'])
@login_required(*STAFF_ROLES)
def add_student():
    """Add student, with a guardian when one is sent"""
    data = get_json_data()
    guardian = data.pop('guardian', None)
    if guardian:
        success, student, message = SecretaryService.create_student_with_guardian(g.tenant_id, data, guardian)
    else:
        success, student, message = SecretaryService.add_student(g.tenant_id, data)

    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, 'student': student.to_dict(include_guardians=True)}), 201

@secretaria_bp.route('/students/<int:student_id>')
@login_required(*STAFF_ROLES)
def student_detail(student_id):
    student = get_for_tenant(Student, g.tenant_id, student_id)
    if not student:
        return _result(False, 'Student not found', 404)
    data = student.to_dict(include_guardians=True)
    data['age'] = student.get_age()
    return jsonify({'success': True, 'student': data})

@secretaria_bp.route('/students/<int:student_id>', methods=['PUT'])
@login_required(*STAFF_ROLES)
def update_student(student_id):
    success, message = SecretaryService.update_student(g.tenant_id, student_id, get_json_data())
    return _result(success, message, 404 if message == 'Student not found' else 400)

@secretaria_bp.route('/students/<int:student_id>/deactivate', methods=['POST'])
@login_required(*STAFF_ROLES)
def deactivate_student(student_id):
    success, message = SecretaryService.deactivate_student(g.tenant_id, student_id)
    return _result(success, message, 404)

# Classes and academic structure

@secretaria_bp.route('/classes')
@login_required(*STAFF_ROLES)
def classes():
    return jsonify({'success': True, 'classes': [c.to_dict() for c in SecretaryService.get_classes(g.tenant_id)]})

@secretaria_bp.route('/classes', methods=['POST'])
@login_required(*STAFF_ROLES)
def create_class():
    success, school_class, message = SecretaryService.create_class(g.tenant_id, get_json_data())
    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, 'class': school_class.to_dict()}), 201

@secretaria_bp.route('/classes/<int:class_id>', methods=['PUT'])
@login_required(*STAFF_ROLES)
def update_class(class_id):
    success, message = SecretaryService.update_class(g.tenant_id, class_id, get_json_data())
    return _result(success, message, 404 if message == 'Class not found' else 400)

@secretaria_bp.route('/classes/<int:class_id>', methods=['DELETE'])
@login_required(*STAFF_ROLES)
def delete_class(class_id):
    success, message = SecretaryService.delete_class(g.tenant_id, class_id)
    return _result(success, message, 404 if message == 'Class not found' else 400)

_CATALOGS = {
    'courses': (Course, SecretaryService.create_course, 'course'),
    'subjects': (Subject, SecretaryService.create_subject, 'subject'),
    'assessment-types': (AssessmentType, SecretaryService.create_assessment_type, 'assessment_type'),
    'academic-periods': (AcademicPeriod, SecretaryService.create_academic_period, 'academic_period'),
}

@secretaria_bp.route('/<any(courses, subjects, "assessment-types", "academic-periods"):catalog>')
@login_required(User.ROLE_ADMIN, User.ROLE_SECRETARY, User.ROLE_TEACHER)
def list_catalog(catalog):
    """Courses, subjects, assessment types or academic periods of the school"""
    model = _CATALOGS[catalog][0]
    items = model.query.filter_by(tenant_id=g.tenant_id).order_by(model.name).all()
    return jsonify({'success': True, 'items': [item.to_dict() for item in items]})

@secretaria_bp.route('/<any(courses, subjects, "assessment-types", "academic-periods"):catalog>', methods=['POST'])
@login_required(*STAFF_ROLES)
def create_catalog_item(catalog):
    _, create, key = _CATALOGS[catalog]
    success, item, message = create(g.tenant_id, get_json_data())
    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, key: item.to_dict()}), 201

@secretaria_bp.route('/courses/<int:course_id>', methods=['DELETE'])
@login_required(*STAFF_ROLES)
def delete_course(course_id):
    success, message = SecretaryService.delete_course(g.tenant_id, course_id)
    return _result(success, message, 404 if message == 'Course not found' else 400)

# Teachers

@secretaria_bp.route('/teachers')
@login_required(*STAFF_ROLES)
def teachers():
    result = []
    for teacher in SecretaryService.get_teachers(g.tenant_id):
        data = teacher.to_dict()
        data['assignments'] = [a.to_dict() for a in teacher.assignments]
        data['has_login'] = teacher.user is not None
        result.append(data)
    return jsonify({'success': True, 'teachers': result})

@secretaria_bp.route('/teachers', methods=['POST'])
@login_required(*STAFF_ROLES)
def create_teacher():
    """Create teacher with class assignments and an optional login"""
    data = get_json_data()
    classes_to_teach = data.pop('classes_to_teach', None) or []
    create_login = bool(data.pop('create_login', False))

    success, employee, message, credentials = SecretaryService.create_teacher(
        g.tenant_id, data, classes_to_teach, create_login=create_login
    )
    if not success:
        return _result(False, message)

    body = {'success': True, 'message': message, 'teacher': employee.to_dict(),
            'assignments': [a.to_dict() for a in employee.assignments]}
    if credentials:
        body['credentials'] = credentials
    return jsonify(body), 201

@secretaria_bp.route('/teachers/<int:employee_id>/assignments', methods=['POST'])
@login_required(*STAFF_ROLES)
def assign_teacher(employee_id):
    success, message = SecretaryService.assign_teacher(g.tenant_id, employee_id, get_json_data())
    return _result(success, message)

@secretaria_bp.route('/assignments/<int:assignment_id>', methods=['DELETE'])
@login_required(*STAFF_ROLES)
def remove_assignment(assignment_id):
    success, message = SecretaryService.remove_assignment(g.tenant_id, assignment_id)
    return _result(success, message, 404)

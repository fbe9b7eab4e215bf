"""
Pedagogical routes for Escola Gestão
Grade entry, class diary with attendance, and academic summaries
"""

from flask import Blueprint, request, jsonify, g, make_response

from models.user import User
from models.student import Student
from routes.auth import login_required, get_json_data
from services.diary_service import ClassDiaryService
from services.grade_service import GradeEntryService, GradeEntrySelection, AcademicSummaryService
from services.excel_export_service import ExcelExportService
from utils.db_helpers import get_for_tenant
from utils.validators import parse_date

pedagogico_bp = Blueprint('pedagogico', __name__)

GRADE_ROLES = (User.ROLE_ADMIN, User.ROLE_SECRETARY, User.ROLE_TEACHER)

@pedagogico_bp.route('/grade-entry/classes')
@login_required(*GRADE_ROLES)
def grade_entry_classes():
    """Classes open for grade entry to the current user"""
    classes = GradeEntryService.available_classes(g.current_user)
    return jsonify({'success': True, 'classes': [{'id': c.id, 'name': c.name, 'school_year': c.school_year}
                                                 for c in classes]})

@pedagogico_bp.route('/grade-entry/classes/<int:class_id>')
@login_required(*GRADE_ROLES)
def grade_entry_class(class_id):
    """Courses and students of a class picked for grade entry"""
    selection = GradeEntrySelection()
    success, message = GradeEntryService.open_class(g.current_user, selection, class_id)
    if not success and selection.class_id is None:
        return jsonify({'success': False, 'message': message}), 403

    students = Student.query.filter(Student.id.in_(selection.student_ids)).order_by(Student.full_name).all()
    courses = GradeEntryService.available_courses(g.current_user, class_id)
    return jsonify({
        'success': success,
        'message': message,
        'requires_course': selection.requires_course,
        'courses': [c.to_dict() for c in courses],
        'students': [{'id': s.id, 'full_name': s.full_name, 'registration_code': s.registration_code}
                     for s in students]
    })

@pedagogico_bp.route('/grade-entry/periods')
@login_required(*GRADE_ROLES)
def grade_entry_periods():
    """Periods the current user may grade for a class and course"""
    class_id = request.args.get('class_id', type=int)
    if class_id is None:
        return jsonify({'success': False, 'message': 'class_id is required'}), 400
    periods = GradeEntryService.available_periods(
        g.current_user, class_id, request.args.get('course_id', type=int)
    )
    return jsonify({'success': True, 'periods': [p.to_dict() for p in periods]})

@pedagogico_bp.route('/grades', methods=['POST'])
@login_required(*GRADE_ROLES)
def submit_grades():
    """Submit a batch of grades for one class, period and subject"""
    data = get_json_data()
    user = g.current_user
    selection = GradeEntrySelection()

    success, message = GradeEntryService.open_class(user, selection, data.get('class_id'))
    if success and data.get('course_id') is not None:
        success, message = GradeEntryService.choose_course(user, selection, data['course_id'])
    if success and data.get('period_id') is not None:
        success, message = GradeEntryService.choose_period(user, selection, data['period_id'])
    if not success:
        return jsonify({'success': False, 'message': message}), 400

    selection.subject_name = data.get('subject_name')
    selection.assessment_type = data.get('assessment_type')
    selection.date_recorded = data.get('date_recorded')

    success, saved, message = GradeEntryService.submit_grades(user, selection, data.get('grades') or {})
    return jsonify({'success': success, 'message': message, 'saved': saved}), 201 if success else 400

@pedagogico_bp.route('/students/<int:student_id>/grades')
@login_required(*GRADE_ROLES)
def student_grades(student_id):
    if not get_for_tenant(Student, g.tenant_id, student_id):
        return jsonify({'success': False, 'message': 'Student not found'}), 404
    grades = GradeEntryService.get_student_grades(g.tenant_id, student_id)
    return jsonify({'success': True, 'grades': [grade.to_dict() for grade in grades]})

@pedagogico_bp.route('/students/<int:student_id>/summary')
@login_required(*GRADE_ROLES)
def academic_summary(student_id):
    """Averages and approval status per subject"""
    student = get_for_tenant(Student, g.tenant_id, student_id)
    if not student:
        return jsonify({'success': False, 'message': 'Student not found'}), 404

    summary = AcademicSummaryService.calculate(g.tenant_id, student_id)
    if request.args.get('format') == 'xlsx':
        excel_data = ExcelExportService.export_academic_summary(student, summary)
        if excel_data is None:
            return jsonify({'success': False, 'message': 'Error generating export'}), 500
        response = make_response(excel_data)
        response.headers['Content-Type'] = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        response.headers['Content-Disposition'] = f'attachment; filename=boletim_{student.registration_code}.xlsx'
        return response

    return jsonify({'success': True, 'summary': summary})

# Class diary

@pedagogico_bp.route('/diary/classes')
@login_required(*GRADE_ROLES)
def diary_classes():
    classes = ClassDiaryService.available_classes(g.current_user)
    return jsonify({'success': True, 'classes': [
        {'id': c.id, 'name': c.name, 'can_write': ClassDiaryService.can_write(g.current_user, c.id)}
        for c in classes
    ]})

@pedagogico_bp.route('/diary/classes/<int:class_id>/students')
@login_required(*GRADE_ROLES)
def diary_roster(class_id):
    """Students listed on the attendance sheet of a class"""
    if not any(c.id == class_id for c in ClassDiaryService.available_classes(g.current_user)):
        return jsonify({'success': False, 'message': 'Class not found'}), 404
    students = ClassDiaryService.roster(g.tenant_id, class_id)
    return jsonify({'success': True, 'students': [{'id': s.id, 'full_name': s.full_name} for s in students]})

@pedagogico_bp.route('/diary', methods=['GET', 'POST'])
@login_required(*GRADE_ROLES)
def diary_entries():
    """List diary entries, or write a new one with its attendance"""
    if request.method == 'POST':
        success, entry, message = ClassDiaryService.save_entry(g.current_user, get_json_data())
        if not success:
            return jsonify({'success': False, 'message': message}), 400
        return jsonify({'success': True, 'message': message, 'entry': entry.to_dict(include_attendance=True)}), 201

    entries = ClassDiaryService.get_entries(
        g.current_user,
        class_id=request.args.get('class_id', type=int),
        teacher_id=request.args.get('teacher_id', type=int),
        entry_date=parse_date(request.args.get('date'))
    )
    return jsonify({'success': True, 'entries': [e.to_dict() for e in entries]})

@pedagogico_bp.route('/diary/<int:entry_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required(*GRADE_ROLES)
def diary_entry(entry_id):
    entry = ClassDiaryService.get_entry(g.current_user, entry_id)
    if entry is None:
        return jsonify({'success': False, 'message': 'Diary entry not found'}), 404

    if request.method == 'GET':
        return jsonify({'success': True, 'entry': entry.to_dict(include_attendance=True)})

    if request.method == 'DELETE':
        success, message = ClassDiaryService.delete_entry(g.current_user, entry_id)
        return jsonify({'success': success, 'message': message}), 200 if success else 403

    success, entry, message = ClassDiaryService.save_entry(g.current_user, get_json_data(), entry_id=entry_id)
    if not success:
        return jsonify({'success': False, 'message': message}), 400
    return jsonify({'success': True, 'message': message, 'entry': entry.to_dict(include_attendance=True)})

@pedagogico_bp.route('/students/<int:student_id>/attendance')
@login_required(*GRADE_ROLES)
def student_attendance(student_id):
    summary = ClassDiaryService.student_attendance(
        g.tenant_id, student_id,
        parse_date(request.args.get('start')),
        parse_date(request.args.get('end'))
    )
    if summary is None:
        return jsonify({'success': False, 'message': 'Student not found'}), 404
    return jsonify({'success': True, 'attendance': summary})

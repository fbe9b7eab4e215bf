"""
Authentication routes for Escola Gestão
Handles login, logout, school registration and public pre-enrollment, plus the access decorator
"""

from functools import wraps

from flask import Blueprint, request, session, jsonify, g, current_app
from flask_wtf.csrf import generate_csrf

from models.user import User
from models.payroll import Employee
from services.auth_service import AuthService, SessionManager
from services.secretary_service import SecretaryService
from services.tenant_service import TenantService
from utils.db_helpers import get_for_tenant
from utils.validators import validate_password

auth_bp = Blueprint('auth', __name__)

def get_json_data():
    """Request body as a dict, from JSON or form data"""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()

# Authentication decorator
def login_required(*roles):
    """Decorator to require an authenticated user, optionally with one of the given roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = SessionManager.get_current_user(session)
            if user is None:
                SessionManager.clear_session(session)
                return jsonify({'success': False, 'message': 'Please log in to access this resource'}), 401

            if roles and user.role not in roles:
                return jsonify({'success': False, 'message': 'Access denied'}), 403

            if not user.is_super_admin:
                tenant = TenantService.get_tenant(user.tenant_id)
                if TenantService.is_access_blocked(tenant):
                    return jsonify({
                        'success': False,
                        'message': 'School access is blocked. Contact support to reactivate your account.',
                        'tenant_blocked': True,
                        'trial': TenantService.trial_countdown(tenant)
                    }), 403

            g.current_user = user
            g.tenant_id = user.tenant_id
            return f(*args, **kwargs)

        return decorated_function
    return decorator

@auth_bp.route('/csrf-token')
def csrf_token():
    """Token for the X-CSRFToken header of state-changing requests"""
    return jsonify({'success': True, 'csrf_token': generate_csrf()})

@auth_bp.route('/login', methods=['POST'])
def login():
    """Login handler"""
    data = get_json_data()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'success': False, 'message': 'Email and password are required'}), 400

    success, user, message = AuthService.authenticate(email, password)
    if not success:
        return jsonify({'success': False, 'message': message}), 401

    SessionManager.create_session(session, user)
    response = {'success': True, 'message': message, 'user': user.to_dict()}
    if user.tenant_id is not None:
        tenant = TenantService.get_tenant(user.tenant_id)
        response['tenant'] = tenant.to_dict()
        response['trial'] = TenantService.trial_countdown(tenant)
        response['tenant_blocked'] = TenantService.is_access_blocked(tenant)
    return jsonify(response)

@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Logout handler"""
    SessionManager.clear_session(session)
    return jsonify({'success': True, 'message': 'You have been logged out successfully'})

@auth_bp.route('/register', methods=['POST'])
def register():
    """Register a new school in trial with its admin account"""
    data = get_json_data()
    success, tenant, message = TenantService.register_tenant(
        data.get('school_name'),
        data.get('email'),
        data.get('full_name'),
        data.get('password'),
        trial_days=current_app.config.get('TRIAL_DAYS', 14)
    )
    if not success:
        return jsonify({'success': False, 'message': message}), 400

    return jsonify({
        'success': True,
        'message': message,
        'tenant': tenant.to_dict(),
        'trial': TenantService.trial_countdown(tenant)
    }), 201

@auth_bp.route('/pre-enrollment', methods=['POST'])
def pre_enrollment():
    """Public enrollment form shared by a school; no login"""
    data = get_json_data()
    try:
        tenant_id = int(data.pop('tenant_id', None))
    except (TypeError, ValueError):
        return jsonify({'success': False, 'message': 'School identifier (tenant_id) is required'}), 400

    success, student, message = SecretaryService.pre_enroll(tenant_id, data)
    if not success:
        return jsonify({'success': False, 'message': message}), 400
    return jsonify({'success': True, 'message': message, 'registration_code': student.registration_code}), 201

@auth_bp.route('/me')
@login_required()
def me():
    """Current user, school and trial state"""
    user = g.current_user
    response = {'success': True, 'user': user.to_dict(), 'session': SessionManager.get_session_info(session)}
    if user.tenant_id is not None:
        tenant = TenantService.get_tenant(user.tenant_id)
        response['tenant'] = tenant.to_dict()
        response['trial'] = TenantService.trial_countdown(tenant)
    return jsonify(response)

@auth_bp.route('/change-password', methods=['POST'])
@login_required()
def change_password():
    """Change password for authenticated users"""
    data = get_json_data()
    current_password = data.get('current_password', '')
    new_password = data.get('new_password', '')
    confirm_password = data.get('confirm_password', '')

    if not all([current_password, new_password, confirm_password]):
        return jsonify({'success': False, 'message': 'All password fields are required'}), 400

    if new_password != confirm_password:
        return jsonify({'success': False, 'message': 'New passwords do not match'}), 400

    is_valid, message = validate_password(new_password)
    if not is_valid:
        return jsonify({'success': False, 'message': message}), 400

    success, message = AuthService.change_password(g.current_user.id, current_password, new_password)
    return jsonify({'success': success, 'message': message}), 200 if success else 400

@auth_bp.route('/users', methods=['GET', 'POST'])
@login_required(User.ROLE_ADMIN)
def users():
    """List or create staff accounts of the school"""
    if request.method == 'GET':
        accounts = User.query.filter_by(tenant_id=g.tenant_id).order_by(User.full_name).all()
        return jsonify({'success': True, 'users': [u.to_dict() for u in accounts]})

    data = get_json_data()
    role = data.get('role')
    if role not in (User.ROLE_ADMIN, User.ROLE_SECRETARY, User.ROLE_TEACHER):
        return jsonify({'success': False, 'message': 'Invalid role'}), 400

    employee_id = data.get('employee_id')
    if employee_id is not None and not get_for_tenant(Employee, g.tenant_id, employee_id):
        return jsonify({'success': False, 'message': 'Employee not found'}), 400

    success, user, password, message = AuthService.create_user(
        g.tenant_id, data.get('email'), data.get('full_name'), role,
        employee_id=employee_id
    )
    if not success:
        return jsonify({'success': False, 'message': message}), 400
    return jsonify({'success': True, 'message': message, 'user': user.to_dict(), 'password': password}), 201

@auth_bp.route('/users/<int:user_id>/reset-password', methods=['POST'])
@login_required(User.ROLE_ADMIN)
def reset_password(user_id):
    success, password, message = AuthService.reset_password(g.tenant_id, user_id)
    if not success:
        return jsonify({'success': False, 'message': message}), 404
    return jsonify({'success': True, 'message': message, 'password': password})

@auth_bp.route('/users/<int:user_id>/toggle-status', methods=['POST'])
@login_required(User.ROLE_ADMIN)
def toggle_user_status(user_id):
    user = User.query.filter_by(id=user_id, tenant_id=g.tenant_id).first()
    if not user:
        return jsonify({'success': False, 'message': 'User not found'}), 404
    if user.id == g.current_user.id:
        return jsonify({'success': False, 'message': 'You cannot deactivate your own account'}), 400

    success, message = AuthService.set_user_active(g.tenant_id, user_id, not user.is_active)
    return jsonify({'success': success, 'message': message, 'is_active': user.is_active})

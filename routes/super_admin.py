"""
Super admin routes for Escola Gestão
School accounts, trials and backup monitoring across tenants
"""

from flask import Blueprint, jsonify

from models.user import User
from routes.auth import login_required, get_json_data
from services.backup_service import BackupService
from services.tenant_service import TenantService

super_admin_bp = Blueprint('super_admin', __name__)

@super_admin_bp.route('/tenants')
@login_required(User.ROLE_SUPER_ADMIN)
def tenants():
    """Every school with usage figures and trial state"""
    return jsonify({'success': True, **TenantService.get_all_tenant_metrics()})

@super_admin_bp.route('/tenants/<int:tenant_id>/status', methods=['POST'])
@login_required(User.ROLE_SUPER_ADMIN)
def update_tenant_status(tenant_id):
    success, message = TenantService.update_status(tenant_id, get_json_data().get('status'))
    return jsonify({'success': success, 'message': message}), 200 if success else 400

@super_admin_bp.route('/tenants/<int:tenant_id>/extend-trial', methods=['POST'])
@login_required(User.ROLE_SUPER_ADMIN)
def extend_trial(tenant_id):
    """Add days to a school's trial"""
    success, expires_at, message = TenantService.extend_trial(tenant_id, get_json_data().get('days'))
    if not success:
        return jsonify({'success': False, 'message': message}), 400
    return jsonify({'success': True, 'message': message, 'trial_expires_at': expires_at.isoformat()})

@super_admin_bp.route('/tenants/<int:tenant_id>/config', methods=['PUT'])
@login_required(User.ROLE_SUPER_ADMIN)
def update_tenant_config(tenant_id):
    success, message = TenantService.update_config(tenant_id, get_json_data())
    return jsonify({'success': success, 'message': message}), 200 if success else 400

@super_admin_bp.route('/backups')
@login_required(User.ROLE_SUPER_ADMIN)
def backups():
    """Backup freshness of every school"""
    return jsonify({'success': True, **BackupService.all_tenants_status()})

@super_admin_bp.route('/backups/<int:tenant_id>', methods=['POST'])
@login_required(User.ROLE_SUPER_ADMIN)
def start_backup(tenant_id):
    success, record, message = BackupService.start_backup(tenant_id)
    if not success:
        return jsonify({'success': False, 'message': message}), 404 if message == 'School not found' else 500
    return jsonify({'success': True, 'message': message, 'backup': record.to_dict(),
                    'status': BackupService.tenant_status(tenant_id)}), 201

"""
Document routes for Escola Gestão
Document records, verification tokens and the public verification endpoint
"""

from flask import Blueprint, request, jsonify, g, current_app

from models.user import User
from routes.auth import login_required, get_json_data
from services.document_service import DocumentService

documents_bp = Blueprint('documents', __name__)

DOCUMENT_ROLES = (User.ROLE_ADMIN, User.ROLE_SECRETARY)

@documents_bp.route('/documents')
@login_required(*DOCUMENT_ROLES)
def documents():
    items = DocumentService.get_documents(
        g.tenant_id,
        document_type=request.args.get('type'),
        related_entity_id=request.args.get('student_id', type=int)
    )
    return jsonify({'success': True, 'documents': [d.to_dict() for d in items]})

@documents_bp.route('/documents', methods=['POST'])
@login_required(*DOCUMENT_ROLES)
def create_document():
    success, document, message = DocumentService.create_document(g.tenant_id, g.current_user.id, get_json_data())
    if not success:
        return jsonify({'success': False, 'message': message}), 400
    return jsonify({'success': True, 'message': message, 'document': document.to_dict()}), 201

@documents_bp.route('/documents/<int:document_id>/token', methods=['POST'])
@login_required(*DOCUMENT_ROLES)
def generate_token(document_id):
    """Issue a verification link; the token is only shown in this response"""
    base_url = current_app.config.get('PUBLIC_BASE_URL') or request.headers.get('Origin') or request.host_url
    success, result, message = DocumentService.generate_token(g.tenant_id, document_id, base_url)
    if not success:
        return jsonify({'success': False, 'message': message}), 404 if message == 'Document not found' else 400
    return jsonify({'success': True, 'message': message, **result}), 201

@documents_bp.route('/documents/<int:document_id>/token', methods=['DELETE'])
@login_required(*DOCUMENT_ROLES)
def revoke_token(document_id):
    success, message = DocumentService.revoke_token(g.tenant_id, document_id)
    return jsonify({'success': success, 'message': message}), 200 if success else 404

@documents_bp.route('/verify-document/<token>')
def verify_document(token):
    """Public check of a transcript or report card"""
    success, data, message = DocumentService.verify(token)
    if not success:
        return jsonify({'success': False, 'message': message}), 404
    return jsonify({'success': True, 'message': message, **data})

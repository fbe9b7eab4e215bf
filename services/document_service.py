"""
Document service for Escola Gestão
Document records and public verification tokens
"""

import hashlib
import logging
import uuid

from database import db
from models.documents import Document, DocumentVerificationToken
from models.student import Student
from models.tenant import Tenant
from services.grade_service import AcademicSummaryService
from utils.db_helpers import get_for_tenant
from utils.validators import validate_choice

logger = logging.getLogger(__name__)

def hash_token(token):
    """sha256 hex digest of a plaintext token"""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()

class DocumentService:
    """Document service class"""

    @staticmethod
    def create_document(tenant_id, user_id, data):
        """Record a generated document; returns (success, document, message)"""
        try:
            is_valid, message = validate_choice(data.get('document_type'), Document.TYPES, "Document type")
            if not is_valid:
                return False, None, message

            related_id = data.get('related_entity_id')
            if data['document_type'] in Document.VERIFIABLE_TYPES:
                if related_id is None or not get_for_tenant(Student, tenant_id, related_id):
                    return False, None, "Academic documents must reference a student of this school"

            document = Document(
                tenant_id=tenant_id,
                document_type=data['document_type'],
                related_entity_id=related_id,
                description=data.get('description'),
                file_url=data.get('file_url'),
                document_metadata=data.get('metadata') or {},
                generated_by=user_id
            )
            db.session.add(document)
            db.session.commit()
            return True, document, "Document created successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error creating document: %s", e)
            return False, None, f"Error creating document: {str(e)}"

    @staticmethod
    def get_documents(tenant_id, document_type=None, related_entity_id=None):
        query = Document.query.filter_by(tenant_id=tenant_id)
        if document_type:
            query = query.filter_by(document_type=document_type)
        if related_entity_id is not None:
            query = query.filter_by(related_entity_id=related_entity_id)
        return query.order_by(Document.generated_at.desc()).all()

    @staticmethod
    def generate_token(tenant_id, document_id, base_url):
        """Issue a verification token; only its hash is stored

        Returns (success, {'token', 'verification_link'}, message). The
        plaintext token cannot be recovered later.
        """
        try:
            document = get_for_tenant(Document, tenant_id, document_id)
            if not document:
                return False, None, "Document not found"

            token = str(uuid.uuid4())
            link = f"{base_url.rstrip('/')}/verify-document/{token}"

            db.session.add(DocumentVerificationToken(document_id=document.id, token_hash=hash_token(token)))
            document.verification_link = link
            db.session.commit()

            logger.info("Verification token issued for document %s", document.id)
            return True, {'token': token, 'verification_link': link}, "Verification token generated"

        except Exception as e:
            db.session.rollback()
            logger.error("Error generating token for document %s: %s", document_id, e)
            return False, None, f"Error generating verification token: {str(e)}"

    @staticmethod
    def revoke_token(tenant_id, document_id):
        """Deactivate every token of a document"""
        try:
            document = get_for_tenant(Document, tenant_id, document_id)
            if not document:
                return False, "Document not found"

            revoked = DocumentVerificationToken.query.filter_by(document_id=document.id, is_active=True)\
                .update({DocumentVerificationToken.is_active: False}, synchronize_session=False)
            document.verification_link = None
            db.session.commit()

            logger.info("Revoked %s verification tokens of document %s", revoked, document.id)
            return True, "Verification revoked"

        except Exception as e:
            db.session.rollback()
            return False, f"Error revoking verification: {str(e)}"

    @staticmethod
    def verify(token):
        """Resolve a public token to the student record behind an academic document"""
        if not token:
            return False, None, "Verification token is required"

        record = DocumentVerificationToken.query.filter_by(token_hash=hash_token(token)).first()
        if not record or not record.is_active:
            return False, None, "Invalid or inactive token"

        document = record.document
        if not document or document.document_type not in Document.VERIFIABLE_TYPES:
            return False, None, "Document not found or not a transcript or report card"

        student = get_for_tenant(Student, document.tenant_id, document.related_entity_id)
        if not student:
            return False, None, "Student not found for this document"

        tenant = db.session.get(Tenant, document.tenant_id)
        return True, {
            'document': {
                'id': document.id,
                'document_type': document.document_type,
                'generated_at': document.generated_at.isoformat() if document.generated_at else None
            },
            'student': student.to_dict(include_guardians=True),
            'tenant': {'name': tenant.name, 'config': tenant.config or {}},
            'academic_summary': AcademicSummaryService.calculate(document.tenant_id, student.id)
        }, "Document verified"

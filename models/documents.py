"""
Document models for Escola Gestão
Document and DocumentVerificationToken models
"""

from database import db
from datetime import datetime

class Document(db.Model):
    """Generated school document"""
    __tablename__ = 'document'

    TYPE_CONTRACT = 'contract'
    TYPE_RECEIPT = 'receipt'
    TYPE_REPORT_CARD = 'report_card'
    TYPE_TRANSCRIPT = 'transcript'
    TYPE_PAYSLIP = 'payslip'
    TYPE_OTHER = 'other'
    TYPES = (TYPE_CONTRACT, TYPE_RECEIPT, TYPE_REPORT_CARD, TYPE_TRANSCRIPT, TYPE_PAYSLIP, TYPE_OTHER)
    VERIFIABLE_TYPES = (TYPE_REPORT_CARD, TYPE_TRANSCRIPT)

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    document_type = db.Column(db.String(20), nullable=False)
    related_entity_id = db.Column(db.Integer, nullable=True)  # student id for academic documents
    description = db.Column(db.String(255), nullable=True)
    file_url = db.Column(db.String(500), nullable=True)
    document_metadata = db.Column('metadata', db.JSON, nullable=True)
    verification_link = db.Column(db.String(500), nullable=True)
    generated_by = db.Column(db.Integer, db.ForeignKey('user_account.id'), nullable=True)
    generated_at = db.Column(db.DateTime, default=datetime.utcnow)

    tokens = db.relationship('DocumentVerificationToken', backref='document', lazy='dynamic',
                             cascade='all, delete-orphan')
    author = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'document_type': self.document_type,
            'related_entity_id': self.related_entity_id,
            'description': self.description,
            'file_url': self.file_url,
            'metadata': self.document_metadata or {},
            'verification_link': self.verification_link,
            'generated_by': self.author.full_name if self.author else None,
            'generated_at': self.generated_at.isoformat() if self.generated_at else None
        }

    def __repr__(self):
        return f'<Document {self.id} {self.document_type}>'

class DocumentVerificationToken(db.Model):
    """Hashed public verification token; the plaintext is never stored"""
    __tablename__ = 'document_verification_token'

    id = db.Column(db.Integer, primary_key=True)
    document_id = db.Column(db.Integer, db.ForeignKey('document.id', ondelete='CASCADE'), nullable=False)
    token_hash = db.Column(db.String(64), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<DocumentVerificationToken document={self.document_id} active={self.is_active}>'

"""
Grade models for Escola Gestão
Grade model for assessment results on the 0-10 scale
"""

from database import db
from datetime import datetime, date

class Grade(db.Model):
    """Single recorded grade for a student"""
    __tablename__ = 'grade'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('employee.id'), nullable=False)
    subject_name = db.Column(db.String(100), nullable=False)
    grade_value = db.Column(db.Float, nullable=False)
    assessment_type = db.Column(db.String(100), nullable=True)
    period = db.Column(db.String(100), nullable=False)
    date_recorded = db.Column(db.Date, default=date.today, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert grade to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'class_id': self.class_id,
            'course_id': self.course_id,
            'teacher_id': self.teacher_id,
            'subject_name': self.subject_name,
            'grade_value': self.grade_value,
            'assessment_type': self.assessment_type,
            'period': self.period,
            'date_recorded': self.date_recorded.isoformat() if self.date_recorded else None
        }

    def __repr__(self):
        return f'<Grade student={self.student_id} {self.subject_name} {self.period}: {self.grade_value}>'

"""
Class diary models for Escola Gestão
ClassDiaryEntry and AttendanceRecord models
"""

from database import db
from datetime import datetime

class ClassDiaryEntry(db.Model):
    """What a teacher taught a class on one day"""
    __tablename__ = 'class_diary_entry'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('employee.id'), nullable=False)
    entry_date = db.Column(db.Date, nullable=False)
    content = db.Column(db.Text, nullable=False)
    homework = db.Column(db.Text, nullable=True)
    general_observations = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    school_class = db.relationship('SchoolClass')
    teacher = db.relationship('Employee')
    attendance = db.relationship('AttendanceRecord', backref='entry', lazy='dynamic',
                                 cascade='all, delete-orphan')

    # One entry per teacher, class and day
    __table_args__ = (db.UniqueConstraint('class_id', 'teacher_id', 'entry_date', name='unique_diary_entry_per_day'),)

    def attendance_counts(self):
        counts = {status: 0 for status in AttendanceRecord.STATUSES}
        for record in self.attendance:
            counts[record.status] += 1
        return counts

    def to_dict(self, include_attendance=False):
        """Convert entry to dictionary"""
        data = {
            'id': self.id,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None,
            'teacher_id': self.teacher_id,
            'teacher_name': self.teacher.full_name if self.teacher else None,
            'entry_date': self.entry_date.isoformat() if self.entry_date else None,
            'content': self.content,
            'homework': self.homework,
            'general_observations': self.general_observations,
            'attendance_counts': self.attendance_counts(),
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
        if include_attendance:
            records = sorted(self.attendance, key=lambda r: r.student.full_name if r.student else '')
            data['attendance'] = [r.to_dict() for r in records]
        return data

    def __repr__(self):
        return f'<ClassDiaryEntry class={self.class_id} {self.entry_date}>'

class AttendanceRecord(db.Model):
    """Attendance of one student in a diary entry"""
    __tablename__ = 'attendance_record'

    STATUS_PRESENT = 'present'
    STATUS_ABSENT = 'absent'
    STATUS_LATE = 'late'
    STATUSES = (STATUS_PRESENT, STATUS_ABSENT, STATUS_LATE)

    id = db.Column(db.Integer, primary_key=True)
    entry_id = db.Column(db.Integer, db.ForeignKey('class_diary_entry.id', ondelete='CASCADE'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    status = db.Column(db.String(10), nullable=False, default=STATUS_PRESENT)

    student = db.relationship('Student')

    __table_args__ = (db.UniqueConstraint('entry_id', 'student_id', name='unique_student_attendance_per_entry'),)

    def is_present(self):
        """Late arrivals count as present"""
        return self.status in (self.STATUS_PRESENT, self.STATUS_LATE)

    def to_dict(self):
        return {
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'status': self.status
        }

    def __repr__(self):
        return f'<AttendanceRecord entry={self.entry_id} student={self.student_id} {self.status}>'

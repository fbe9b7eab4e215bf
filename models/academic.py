"""
Academic structure models for Escola Gestão
SchoolClass, Course, Subject, AssessmentType, AcademicPeriod and TeacherAssignment models
"""

from database import db, NameKeyMixin
from datetime import datetime

class_courses = db.Table(
    'class_courses',
    db.Column('class_id', db.Integer, db.ForeignKey('school_class.id', ondelete='CASCADE'), primary_key=True),
    db.Column('course_id', db.Integer, db.ForeignKey('course.id', ondelete='CASCADE'), primary_key=True)
)

class SchoolClass(db.Model):
    """Class group (turma) students belong to"""
    __tablename__ = 'school_class'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    school_year = db.Column(db.Integer, nullable=False)
    shift = db.Column(db.String(30), nullable=True)  # manhã, tarde, noite, integral
    room = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    courses = db.relationship('Course', secondary=class_courses, backref=db.backref('classes', lazy='dynamic'),
                              order_by='Course.name')
    students = db.relationship('Student', backref='school_class', lazy='dynamic')
    assignments = db.relationship('TeacherAssignment', backref='school_class', lazy='dynamic',
                                  cascade='all, delete-orphan')

    def get_active_students(self):
        """Active students of this class ordered by name"""
        from models.student import Student
        return self.students.filter_by(status=Student.STATUS_ACTIVE).order_by(Student.full_name).all()

    def get_active_students_count(self):
        from models.student import Student
        return self.students.filter_by(status=Student.STATUS_ACTIVE).count()

    def to_dict(self):
        """Convert class to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'school_year': self.school_year,
            'shift': self.shift,
            'room': self.room,
            'courses': [{'id': c.id, 'name': c.name} for c in self.courses],
            'active_students': self.get_active_students_count(),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<SchoolClass {self.name} ({self.school_year})>'

class Course(NameKeyMixin, db.Model):
    """Grade level (série/ano) taught inside a class"""
    __tablename__ = 'course'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    level = db.Column(db.String(50), nullable=True)  # Infantil, Fundamental I, Fundamental II
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('tenant_id', 'name_key', name='unique_course_name_per_tenant'),)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'level': self.level,
            'description': self.description
        }

    def __repr__(self):
        return f'<Course {self.name}>'

class Subject(NameKeyMixin, db.Model):
    """Subject (matéria) grades are recorded for"""
    __tablename__ = 'subject'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('tenant_id', 'name_key', name='unique_subject_name_per_tenant'),)

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    def __repr__(self):
        return f'<Subject {self.name}>'

class AssessmentType(NameKeyMixin, db.Model):
    """Kind of assessment (prova, trabalho, ...)"""
    __tablename__ = 'assessment_type'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)

    __table_args__ = (db.UniqueConstraint('tenant_id', 'name_key', name='unique_assessment_type_per_tenant'),)

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    def __repr__(self):
        return f'<AssessmentType {self.name}>'

class AcademicPeriod(NameKeyMixin, db.Model):
    """Grading period (1º Bimestre, ...)"""
    __tablename__ = 'academic_period'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenant.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    __table_args__ = (db.UniqueConstraint('tenant_id', 'name_key', name='unique_academic_period_per_tenant'),)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None
        }

    def __repr__(self):
        return f'<AcademicPeriod {self.name}>'

class TeacherAssignment(db.Model):
    """Link between a teacher and the class/course/period they may grade"""
    __tablename__ = 'teacher_assignment'

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey('employee.id', ondelete='CASCADE'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id', ondelete='CASCADE'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=True)
    academic_period_id = db.Column(db.Integer, db.ForeignKey('academic_period.id'), nullable=True)
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow)

    course = db.relationship('Course')
    academic_period = db.relationship('AcademicPeriod')

    # A null course or period means "all of them"
    __table_args__ = (db.UniqueConstraint('employee_id', 'class_id', 'course_id', 'academic_period_id',
                                          name='unique_teacher_assignment'),)

    def to_dict(self):
        """Convert assignment to dictionary"""
        return {
            'id': self.id,
            'employee_id': self.employee_id,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None,
            'course_id': self.course_id,
            'course_name': self.course.name if self.course else None,
            'academic_period_id': self.academic_period_id,
            'academic_period_name': self.academic_period.name if self.academic_period else None,
            'assigned_at': self.assigned_at.isoformat() if self.assigned_at else None
        }

    def __repr__(self):
        return f'<TeacherAssignment employee={self.employee_id} class={self.class_id}>'

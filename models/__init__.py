"""
Database models package for Escola Gestão
"""

from .tenant import Tenant, BackupRecord
from .user import User
from .academic import SchoolClass, Course, Subject, AssessmentType, AcademicPeriod, TeacherAssignment, class_courses
from .student import Student, Guardian, StudentGuardian
from .grades import Grade
from .diary import ClassDiaryEntry, AttendanceRecord
from .financial import Category, Revenue, Expense, TuitionFee
from .payroll import Role, Employee, Payroll
from .documents import Document, DocumentVerificationToken

__all__ = [
    'Tenant', 'BackupRecord', 'User', 'SchoolClass', 'Course', 'Subject',
    'AssessmentType', 'AcademicPeriod', 'TeacherAssignment', 'class_courses',
    'Student', 'Guardian', 'StudentGuardian', 'Grade', 'ClassDiaryEntry',
    'AttendanceRecord', 'Category', 'Revenue',
    'Expense', 'TuitionFee', 'Role', 'Employee', 'Payroll', 'Document',
    'DocumentVerificationToken'
]

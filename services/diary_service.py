"""
Class diary service for Escola Gestão
Lesson records and student attendance kept by assigned teachers
"""

import logging
from datetime import date

from database import db, ValidationError
from models.academic import SchoolClass
from models.diary import ClassDiaryEntry, AttendanceRecord
from models.student import Student
from models.user import User
from services.grade_service import GradeEntryService
from utils.db_helpers import atomic, get_for_tenant, safe_delete_and_commit
from utils.validators import parse_date

logger = logging.getLogger(__name__)

class ClassDiaryService:
    """Class diary service class"""

    @staticmethod
    def available_classes(user):
        """Classes a teacher keeps a diary for; admins and secretaries see every class"""
        return GradeEntryService.available_classes(user)

    @staticmethod
    def can_write(user, class_id):
        """Only a teacher assigned to the class writes its diary"""
        employee = user.employee
        return employee is not None and any(c.id == class_id for c in employee.get_assigned_classes())

    @staticmethod
    def roster(tenant_id, class_id):
        """Active students of the class, ordered by name"""
        school_class = get_for_tenant(SchoolClass, tenant_id, class_id)
        return school_class.get_active_students() if school_class else []

    @staticmethod
    def _parse_attendance(value):
        """{student_id: status} from a mapping or a list of {student_id, status} rows"""
        if isinstance(value, dict):
            rows = value.items()
        else:
            rows = [(row.get('student_id'), row.get('status')) for row in value or []]

        statuses = {}
        for student_id, status in rows:
            try:
                student_id = int(student_id)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid student id: {student_id}") from None
            if status not in AttendanceRecord.STATUSES:
                raise ValidationError(f"Invalid attendance status: {status}")
            statuses[student_id] = status
        return statuses

    @staticmethod
    def _apply_attendance(entry, statuses):
        """Write one record per rostered student; students left out are present"""
        roster = {s.id for s in ClassDiaryService.roster(entry.tenant_id, entry.class_id)}
        unknown = set(statuses) - roster
        if unknown:
            raise ValidationError("Attendance lists students outside this class")

        existing = {record.student_id: record for record in entry.attendance}
        for student_id in roster:
            status = statuses.get(student_id)
            record = existing.get(student_id)
            if record is None:
                entry.attendance.append(AttendanceRecord(
                    student_id=student_id, status=status or AttendanceRecord.STATUS_PRESENT
                ))
            elif status is not None:
                record.status = status

    @staticmethod
    def save_entry(user, data, entry_id=None):
        """Create or edit a diary entry with its attendance

        Returns (success, entry, message).
        """
        try:
            with atomic():
                if entry_id is not None:
                    entry = get_for_tenant(ClassDiaryEntry, user.tenant_id, entry_id)
                    if not entry:
                        raise ValidationError("Diary entry not found")
                    if entry.teacher_id != user.employee_id:
                        raise ValidationError("Only the teacher who wrote this entry can change it")
                    class_id = entry.class_id
                else:
                    class_id = data.get('class_id')
                    if not get_for_tenant(SchoolClass, user.tenant_id, class_id):
                        raise ValidationError("Class not found")
                    if not ClassDiaryService.can_write(user, class_id):
                        raise ValidationError("You are not assigned to this class")
                    entry = ClassDiaryEntry(tenant_id=user.tenant_id, class_id=class_id,
                                            teacher_id=user.employee_id)

                if entry_id is None or 'entry_date' in data:
                    entry_date = parse_date(data.get('entry_date')) or (date.today() if entry_id is None else None)
                    if entry_date is None:
                        raise ValidationError("Entry date must be in YYYY-MM-DD format")
                    duplicate = ClassDiaryEntry.query.filter_by(
                        class_id=class_id, teacher_id=user.employee_id, entry_date=entry_date
                    ).first()
                    if duplicate is not None and duplicate.id != entry.id:
                        raise ValidationError("There is already a diary entry for this class on this date")
                    entry.entry_date = entry_date

                if entry_id is None or 'content' in data:
                    content = (data.get('content') or '').strip()
                    if not content:
                        raise ValidationError("Lesson content is required")
                    entry.content = content

                for field in ('homework', 'general_observations'):
                    if field in data:
                        setattr(entry, field, (data[field] or '').strip() or None)

                if entry_id is None:
                    db.session.add(entry)
                    db.session.flush()

                statuses = ClassDiaryService._parse_attendance(data.get('attendance'))
                ClassDiaryService._apply_attendance(entry, statuses)

            logger.info("Diary entry %s saved for class %s by employee %s", entry.id, class_id, user.employee_id)
            return True, entry, "Diary entry saved successfully"

        except ValidationError as e:
            return False, None, str(e)
        except Exception as e:
            db.session.rollback()
            logger.error("Error saving diary entry: %s", e)
            return False, None, f"Error saving diary entry: {str(e)}"

    @staticmethod
    def delete_entry(user, entry_id):
        entry = get_for_tenant(ClassDiaryEntry, user.tenant_id, entry_id)
        if not entry:
            return False, "Diary entry not found"
        if entry.teacher_id != user.employee_id:
            return False, "Only the teacher who wrote this entry can delete it"
        return safe_delete_and_commit(entry)

    @staticmethod
    def get_entries(user, class_id=None, teacher_id=None, entry_date=None):
        """Entries newest first; teachers only see their own"""
        query = ClassDiaryEntry.query.filter_by(tenant_id=user.tenant_id)
        if user.role == User.ROLE_TEACHER:
            query = query.filter_by(teacher_id=user.employee_id)
        elif teacher_id is not None:
            query = query.filter_by(teacher_id=teacher_id)
        if class_id is not None:
            query = query.filter_by(class_id=class_id)
        if entry_date is not None:
            query = query.filter_by(entry_date=entry_date)
        return query.order_by(ClassDiaryEntry.entry_date.desc(), ClassDiaryEntry.id.desc()).all()

    @staticmethod
    def get_entry(user, entry_id):
        entry = get_for_tenant(ClassDiaryEntry, user.tenant_id, entry_id)
        if entry is None:
            return None
        if user.role == User.ROLE_TEACHER and entry.teacher_id != user.employee_id:
            return None
        return entry

    @staticmethod
    def student_attendance(tenant_id, student_id, start_date=None, end_date=None):
        """Attendance counts and percentage of a student; late counts as present"""
        student = get_for_tenant(Student, tenant_id, student_id)
        if not student:
            return None

        query = AttendanceRecord.query.join(ClassDiaryEntry).filter(
            ClassDiaryEntry.tenant_id == tenant_id,
            AttendanceRecord.student_id == student.id
        )
        if start_date:
            query = query.filter(ClassDiaryEntry.entry_date >= start_date)
        if end_date:
            query = query.filter(ClassDiaryEntry.entry_date <= end_date)

        records = query.all()
        counts = {status: 0 for status in AttendanceRecord.STATUSES}
        for record in records:
            counts[record.status] += 1

        total = len(records)
        attended = counts[AttendanceRecord.STATUS_PRESENT] + counts[AttendanceRecord.STATUS_LATE]
        return {
            'student_id': student.id,
            'total': total,
            'counts': counts,
            'percentage': round(attended / total * 100, 2) if total else None
        }

"""
Validation utilities for Escola Gestão
"""

import re
from datetime import datetime, date
from decimal import Decimal, InvalidOperation

def validate_email(email):
    """Validate email address format"""
    if not email or len(email.strip()) == 0:
        return False, "Email is required"

    if len(email) > 120:
        return False, "Email must be 120 characters or less"

    if not re.match(r'^[^@\s]+@[^@\s]+\.[^@\s]+$', email.strip()):
        return False, "Invalid email address"

    return True, "Valid email"

def validate_name(name, field_name="Name", min_length=2):
    """Validate person or record name"""
    if not name or len(name.strip()) == 0:
        return False, f"{field_name} is required"

    if len(name.strip()) < min_length:
        return False, f"{field_name} must be at least {min_length} characters long"

    if len(name) > 150:
        return False, f"{field_name} must be 150 characters or less"

    return True, f"Valid {field_name.lower()}"

def validate_password(password):
    """Validate password strength"""
    if not password:
        return False, "Password is required"

    if len(password) < 6:
        return False, "Password must be at least 6 characters long"

    if len(password) > 128:
        return False, "Password must be 128 characters or less"

    return True, "Valid password"

def validate_registration_code(code):
    """Validate student registration code format"""
    if not code or len(code.strip()) == 0:
        return False, "Registration code is required"

    if len(code) > 30:
        return False, "Registration code must be 30 characters or less"

    if not re.match(r'^[A-Za-z0-9_-]+$', code):
        return False, "Registration code can only contain letters, numbers, hyphens, and underscores"

    return True, "Valid registration code"

def validate_positive_amount(amount, field_name="Amount"):
    """Validate a money amount strictly greater than zero"""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        return False, f"{field_name} must be a valid number"

    if not value.is_finite():
        return False, f"{field_name} must be a valid number"

    if value <= 0:
        return False, f"{field_name} must be positive"

    return True, f"Valid {field_name.lower()}"

def validate_non_negative_amount(amount, field_name="Amount"):
    """Validate a money amount that may be zero"""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        return False, f"{field_name} must be a valid number"

    if not value.is_finite() or value < 0:
        return False, f"{field_name} cannot be negative"

    return True, f"Valid {field_name.lower()}"

def validate_grade(value, max_grade=10.0):
    """Validate a grade value on the 0..max scale"""
    try:
        grade = float(value)
    except (ValueError, TypeError):
        return False, "Grade must be a valid number"

    if grade < 0:
        return False, "Grade must be 0 or greater"

    if grade > max_grade:
        return False, f"Maximum grade is {max_grade:g}"

    return True, "Valid grade"

def validate_year(year):
    """Validate a calendar year"""
    try:
        year_int = int(year)
    except (ValueError, TypeError):
        return False, "Year must be a number"

    if year_int < 1900 or year_int > 2200:
        return False, "Year must be between 1900 and 2200"

    return True, "Valid year"

def validate_due_day(day):
    """Validate a monthly due day"""
    try:
        day_int = int(day)
    except (ValueError, TypeError):
        return False, "Due day must be a number"

    if day_int < 1 or day_int > 31:
        return False, "Due day must be between 1 and 31"

    return True, "Valid due day"

def validate_choice(value, choices, field_name="Value"):
    """Validate that a value belongs to an allowed set"""
    if value not in choices:
        return False, f"{field_name} must be one of: {', '.join(choices)}"

    return True, f"Valid {field_name.lower()}"

def parse_date(value):
    """Parse a YYYY-MM-DD string (or pass a date through), None when invalid"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except ValueError:
        return None

def validate_date(date_str, allow_future=True):
    """Validate date format"""
    parsed = parse_date(date_str)
    if parsed is None:
        return False, "Date must be in YYYY-MM-DD format"

    if not allow_future and parsed > date.today():
        return False, "Date cannot be in the future"

    if parsed < date(1900, 1, 1):
        return False, "Date cannot be before 1900-01-01"

    return True, "Valid date"

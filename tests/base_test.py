"""
Base test class for Escola Gestão tests
"""

import os
import sys
import unittest
from datetime import datetime, timedelta, date
from decimal import Decimal

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from database import db
from models.tenant import Tenant
from models.user import User
from models.academic import SchoolClass, Course, AcademicPeriod
from models.student import Student
from models.payroll import Employee

class BaseTestCase(unittest.TestCase):
    """Base test case that other test classes can inherit from"""

    def setUp(self):
        """Set up test fixtures before each test method"""
        self.app = create_app('testing')
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.client = self.app.test_client()

        db.create_all()

    def tearDown(self):
        """Clean up after each test method"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def get_json_response(self, response):
        """Helper method to get JSON data from response"""
        return response.get_json()

    def assert_status_code(self, response, expected_status):
        """Helper method to assert response status code"""
        if response.status_code != expected_status:
            body = response.get_data().decode('utf-8', errors='replace')
            self.fail(f"Expected status {expected_status}, got {response.status_code}: {body}")

    def assert_json_contains(self, response, key, expected_value=None):
        """Helper method to assert JSON response contains a key"""
        json_data = self.get_json_response(response)
        self.assertIn(key, json_data, f"Key '{key}' not found in response")

        if expected_value is not None:
            self.assertEqual(json_data[key], expected_value,
                             f"Expected {key}='{expected_value}', got '{json_data[key]}'")

    # Fixtures

    def create_tenant(self, name='Escola Teste', status=Tenant.STATUS_TRIAL, trial_days=14):
        tenant = Tenant(
            name=name,
            status=status,
            trial_expires_at=datetime.utcnow() + timedelta(days=trial_days),
            config={}
        )
        db.session.add(tenant)
        db.session.commit()
        return tenant

    def create_user(self, tenant, role=User.ROLE_ADMIN, email=None, password='secret123', employee=None):
        user = User(
            tenant_id=tenant.id if tenant else None,
            email=email or f'{role}{User.query.count() + 1}@escola.test',
            full_name=f'Test {role}',
            role=role,
            employee_id=employee.id if employee else None
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    def create_class(self, tenant, name='Turma A', courses=None):
        school_class = SchoolClass(tenant_id=tenant.id, name=name, school_year=2025)
        for course in courses or []:
            school_class.courses.append(course)
        db.session.add(school_class)
        db.session.commit()
        return school_class

    def create_course(self, tenant, name='1º Ano'):
        course = Course(tenant_id=tenant.id, name=name)
        db.session.add(course)
        db.session.commit()
        return course

    def create_period(self, tenant, name, start=None):
        period = AcademicPeriod(tenant_id=tenant.id, name=name, start_date=start)
        db.session.add(period)
        db.session.commit()
        return period

    def create_student(self, tenant, name='Aluno Teste', school_class=None, status=Student.STATUS_ACTIVE, code=None):
        student = Student(
            tenant_id=tenant.id,
            registration_code=code or f'2025{Student.query.count() + 1:03d}',
            full_name=name,
            status=status,
            class_id=school_class.id if school_class else None
        )
        db.session.add(student)
        db.session.commit()
        return student

    def create_employee(self, tenant, name='Funcionário Teste', base_salary='3000.00', is_teacher=False):
        employee = Employee(
            tenant_id=tenant.id,
            full_name=name,
            base_salary=Decimal(base_salary),
            hire_date=date(2024, 1, 15),
            is_teacher=is_teacher
        )
        db.session.add(employee)
        db.session.commit()
        return employee

    def login(self, email, password='secret123'):
        return self.client.post('/login', json={'email': email, 'password': password})

if __name__ == '__main__':
    unittest.main()

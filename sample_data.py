#!/usr/bin/env python3
"""
Sample data generator for Escola Gestão
Creates a demo school for testing and demonstration
"""

from datetime import date

from app import create_app
from models.user import User
from services.tenant_service import TenantService
from services.secretary_service import SecretaryService
from services.payroll_service import PayrollService
from services.tuition_service import TuitionService
from services.finance_service import FinanceService

def create_sample_data(app=None):
    """Create sample data for the system"""
    app = app or create_app()

    with app.app_context():
        print("Creating sample data...")

        success, tenant, message = TenantService.register_tenant(
            'Escola Modelo', 'admin@escolamodelo.com.br', 'Ana Diretora', 'admin123', trial_days=30
        )
        if not success:
            print(f"✗ {message}")
            return
        print(f"✓ Created school {tenant.name} (admin@escolamodelo.com.br / admin123)")

        courses = []
        for name, level in (('1º Ano', 'Fundamental I'), ('2º Ano', 'Fundamental I'), ('6º Ano', 'Fundamental II')):
            _, course, _ = SecretaryService.create_course(tenant.id, {'name': name, 'level': level})
            courses.append(course)

        for name in ('Português', 'Matemática', 'Ciências', 'História'):
            SecretaryService.create_subject(tenant.id, {'name': name})
        for name in ('Prova', 'Trabalho'):
            SecretaryService.create_assessment_type(tenant.id, {'name': name})

        year = date.today().year
        periods = []
        for number, (start, end) in enumerate(((2, 4), (5, 7), (8, 9), (10, 12)), start=1):
            _, period, _ = SecretaryService.create_academic_period(tenant.id, {
                'name': f'{number}º Bimestre',
                'start_date': date(year, start, 1).isoformat(),
                'end_date': date(year, end, 28).isoformat()
            })
            periods.append(period)
        print(f"✓ Created {len(courses)} courses and {len(periods)} academic periods")

        _, morning, _ = SecretaryService.create_class(tenant.id, {
            'name': 'Turma A', 'school_year': year, 'shift': 'manhã', 'room': '101',
            'course_ids': [courses[0].id, courses[1].id]
        })
        _, afternoon, _ = SecretaryService.create_class(tenant.id, {
            'name': 'Turma B', 'school_year': year, 'shift': 'tarde', 'room': '102'
        })

        students = [
            ('Lucas Almeida', morning, 'Maria Almeida'),
            ('Beatriz Souza', morning, 'Carlos Souza'),
            ('Gabriel Lima', afternoon, 'Fernanda Lima'),
            ('Julia Costa', afternoon, 'Roberto Costa'),
        ]
        for student_name, school_class, guardian_name in students:
            SecretaryService.create_student_with_guardian(
                tenant.id,
                {'full_name': student_name, 'class_id': school_class.id, 'birth_date': f'{year - 8}-03-15'},
                {'full_name': guardian_name, 'relationship_type': 'Responsável', 'phone': '(11) 99999-0000'}
            )
        print(f"✓ Created {len(students)} students with guardians")

        _, role, _ = PayrollService.create_role(tenant.id, {'name': 'Professor', 'department': 'Pedagógico'})
        success, teacher, message, credentials = SecretaryService.create_teacher(
            tenant.id,
            {'full_name': 'Paulo Professor', 'base_salary': '3500.00', 'hire_date': f'{year}-01-15',
             'role_id': role.id, 'email': 'paulo@escolamodelo.com.br'},
            [{'class_id': morning.id, 'course_id': courses[0].id}, {'class_id': afternoon.id}],
            create_login=True
        )
        if success:
            print(f"✓ Created teacher {teacher.full_name} ({credentials['email']} / {credentials['password']})")

        _, counts, message = TuitionService.generate_fees(tenant.id, year, '650.00', 10)
        print(f"✓ {message}")

        FinanceService.record_transaction(tenant.id, None, 'expense', {
            'date': date.today().isoformat(), 'amount': '320.00', 'description': 'Conta de luz',
            'category_path': ['Despesas Fixas', 'Utilidades', 'Energia'], 'status': 'pago'
        })
        print("✓ Recorded sample expense")

        admin = User.query.filter_by(email='admin@escolamodelo.com.br').first()
        print("\n🎉 Sample data creation completed!")
        print(f"\nLogin: {admin.email} / admin123")

if __name__ == '__main__':
    create_sample_data()

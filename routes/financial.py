"""
Financial routes for Escola Gestão
Transactions, categories, tuition fees, payroll and exports
"""

from flask import Blueprint, request, jsonify, g, make_response

from models.user import User
from models.financial import Category
from routes.auth import login_required, get_json_data
from services.category_service import CategoryService
from services.finance_service import FinanceService
from services.tuition_service import TuitionService
from services.payroll_service import PayrollService
from services.excel_export_service import ExcelExportService

financial_bp = Blueprint('financial', __name__)

FINANCE_ROLES = (User.ROLE_ADMIN, User.ROLE_SECRETARY)

def _result(success, message, status=400, **extra):
    body = {'success': success, 'message': message}
    body.update(extra)
    return jsonify(body), (200 if success else status)

def _xlsx_response(excel_data, filename):
    if excel_data is None:
        return jsonify({'success': False, 'message': 'Error generating export'}), 500
    response = make_response(excel_data)
    response.headers['Content-Type'] = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    response.headers['Content-Disposition'] = f'attachment; filename={filename}'
    return response

@financial_bp.route('/metrics')
@login_required(*FINANCE_ROLES)
def metrics():
    """Income, expense and balance figures for a year"""
    data = FinanceService.get_metrics(g.tenant_id, request.args.get('year', type=int))
    data['tuition'] = TuitionService.summary(g.tenant_id, year=data['year'])
    return jsonify({'success': True, 'metrics': data})

# Categories

@financial_bp.route('/categories')
@login_required(*FINANCE_ROLES)
def categories():
    """One level of the category tree, or the whole tree with ?tree=1"""
    category_type = request.args.get('type', Category.TYPE_EXPENSE)
    if category_type not in Category.TYPES:
        return _result(False, 'Type must be income or expense')

    if request.args.get('tree'):
        return jsonify({'success': True, 'tree': CategoryService.get_tree(g.tenant_id, category_type)})

    items = CategoryService.children(g.tenant_id, category_type, request.args.get('parent_id', type=int))
    return jsonify({'success': True, 'categories': [c.to_dict() for c in items]})

@financial_bp.route('/categories/resolve', methods=['POST'])
@login_required(*FINANCE_ROLES)
def resolve_category():
    """Find or create the category path typed in the picker"""
    data = get_json_data()
    success, category, message = CategoryService.resolve_path(g.tenant_id, data.get('type'), data.get('path'))
    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, 'category': category.to_dict()})

@financial_bp.route('/categories/<int:category_id>', methods=['DELETE'])
@login_required(*FINANCE_ROLES)
def delete_category(category_id):
    success, message = CategoryService.delete_category(g.tenant_id, category_id)
    return _result(success, message, 404 if message == 'Category not found' else 400)

# Transactions

@financial_bp.route('/transactions', methods=['POST'])
@login_required(*FINANCE_ROLES)
def record_transaction():
    """Record an income or expense entry"""
    data = get_json_data()
    success, entry, message = FinanceService.record_transaction(
        g.tenant_id, g.current_user.id, data.get('type'), data
    )
    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, 'entry': entry.to_dict()}), 201

@financial_bp.route('/revenues')
@login_required(*FINANCE_ROLES)
def revenues():
    page = FinanceService.get_revenues(
        g.tenant_id,
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
        page=request.args.get('page', 1, type=int)
    )
    page['items'] = [r.to_dict() for r in page['items']]
    return jsonify({'success': True, **page})

@financial_bp.route('/revenues/<int:revenue_id>', methods=['DELETE'])
@login_required(*FINANCE_ROLES)
def delete_revenue(revenue_id):
    success, message = FinanceService.delete_revenue(g.tenant_id, revenue_id)
    return _result(success, message, 404 if message == 'Revenue not found' else 400)

@financial_bp.route('/expenses')
@login_required(*FINANCE_ROLES)
def expenses():
    page = FinanceService.get_expenses(
        g.tenant_id,
        status=request.args.get('status'),
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
        page=request.args.get('page', 1, type=int)
    )
    page['items'] = [e.to_dict() for e in page['items']]
    return jsonify({'success': True, **page})

@financial_bp.route('/expenses/<int:expense_id>', methods=['PUT'])
@login_required(*FINANCE_ROLES)
def update_expense(expense_id):
    success, message = FinanceService.update_expense(g.tenant_id, expense_id, get_json_data())
    return _result(success, message, 404 if message == 'Expense not found' else 400)

@financial_bp.route('/expenses/<int:expense_id>', methods=['DELETE'])
@login_required(*FINANCE_ROLES)
def delete_expense(expense_id):
    success, message = FinanceService.delete_expense(g.tenant_id, expense_id)
    return _result(success, message, 404 if message == 'Expense not found' else 400)

@financial_bp.route('/export')
@login_required(*FINANCE_ROLES)
def export_finance():
    """Yearly finance report as Excel"""
    data = FinanceService.get_metrics(g.tenant_id, request.args.get('year', type=int))
    revenues, expenses = FinanceService.get_year_ledgers(g.tenant_id, data['year'])
    excel_data = ExcelExportService.export_finance_report(data, revenues, expenses)
    return _xlsx_response(excel_data, f"financeiro_{data['year']}.xlsx")

# Tuition

@financial_bp.route('/tuition')
@login_required(*FINANCE_ROLES)
def tuition_fees():
    """Tuition fees with status, year and month filters"""
    TuitionService.refresh_overdue(g.tenant_id)
    filters = dict(
        status=request.args.get('status'),
        year=request.args.get('year', type=int),
        month=request.args.get('month', type=int),
    )
    page = TuitionService.list_fees(
        g.tenant_id,
        student_id=request.args.get('student_id', type=int),
        page=request.args.get('page', 1, type=int),
        **filters
    )
    page['items'] = [fee.to_dict() for fee in page['items']]
    summary = TuitionService.summary(g.tenant_id, year=filters['year'], month=filters['month'])
    return jsonify({'success': True, 'summary': summary, **page})

@financial_bp.route('/tuition/generate', methods=['POST'])
@login_required(*FINANCE_ROLES)
def generate_tuition():
    """Generate monthly fees for every active student"""
    data = get_json_data()
    success, counts, message = TuitionService.generate_fees(
        g.tenant_id,
        data.get('year'),
        data.get('base_amount'),
        data.get('due_day'),
        academic_period_id=data.get('academic_period_id'),
        description=data.get('description'),
        months=data.get('months')
    )
    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, **counts}), 201

@financial_bp.route('/tuition/<int:fee_id>/pay', methods=['POST'])
@login_required(*FINANCE_ROLES)
def pay_tuition(fee_id):
    data = get_json_data()
    success, revenue, message = TuitionService.mark_paid(
        g.tenant_id, fee_id, user_id=g.current_user.id,
        payment_date=data.get('payment_date'), payment_method=data.get('payment_method')
    )
    if not success:
        return _result(False, message, 404 if message == 'Tuition fee not found' else 400)
    return jsonify({'success': True, 'message': message, 'revenue': revenue.to_dict()})

@financial_bp.route('/tuition/<int:fee_id>/reverse', methods=['POST'])
@login_required(*FINANCE_ROLES)
def reverse_tuition(fee_id):
    success, message = TuitionService.reverse_payment(g.tenant_id, fee_id)
    return _result(success, message, 404 if message == 'Tuition fee not found' else 400)

@financial_bp.route('/tuition/export')
@login_required(*FINANCE_ROLES)
def export_tuition():
    filters = dict(
        status=request.args.get('status'),
        year=request.args.get('year', type=int),
        month=request.args.get('month', type=int),
    )
    fees = TuitionService.get_all_fees(g.tenant_id, **filters)
    summary = TuitionService.summary(g.tenant_id, year=filters['year'], month=filters['month'])
    return _xlsx_response(ExcelExportService.export_tuition_fees(fees, summary, filters), 'mensalidades.xlsx')

# Payroll

@financial_bp.route('/roles')
@login_required(*FINANCE_ROLES)
def roles():
    return jsonify({'success': True, 'roles': [r.to_dict() for r in PayrollService.get_roles(g.tenant_id)]})

@financial_bp.route('/roles', methods=['POST'])
@login_required(User.ROLE_ADMIN)
def create_role():
    success, role, message = PayrollService.create_role(g.tenant_id, get_json_data())
    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, 'role': role.to_dict()}), 201

@financial_bp.route('/roles/<int:role_id>', methods=['PUT'])
@login_required(User.ROLE_ADMIN)
def update_role(role_id):
    success, message = PayrollService.update_role(g.tenant_id, role_id, get_json_data())
    return _result(success, message, 404 if message == 'Role not found' else 400)

@financial_bp.route('/roles/<int:role_id>', methods=['DELETE'])
@login_required(User.ROLE_ADMIN)
def delete_role(role_id):
    success, message = PayrollService.delete_role(g.tenant_id, role_id)
    return _result(success, message, 404 if message == 'Role not found' else 400)

@financial_bp.route('/employees')
@login_required(*FINANCE_ROLES)
def employees():
    active_only = request.args.get('active') == '1'
    items = PayrollService.get_employees(g.tenant_id, active_only=active_only)
    return jsonify({'success': True, 'employees': [e.to_dict() for e in items]})

@financial_bp.route('/employees', methods=['POST'])
@login_required(User.ROLE_ADMIN)
def create_employee():
    success, employee, message = PayrollService.create_employee(g.tenant_id, get_json_data())
    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, 'employee': employee.to_dict()}), 201

@financial_bp.route('/employees/<int:employee_id>', methods=['PUT'])
@login_required(User.ROLE_ADMIN)
def update_employee(employee_id):
    success, message = PayrollService.update_employee(g.tenant_id, employee_id, get_json_data())
    return _result(success, message, 404 if message == 'Employee not found' else 400)

@financial_bp.route('/payroll')
@login_required(User.ROLE_ADMIN)
def payrolls():
    items = PayrollService.get_payrolls(
        g.tenant_id, request.args.get('month'), request.args.get('status')
    )
    if request.args.get('format') == 'xlsx':
        return _xlsx_response(ExcelExportService.export_payroll(items, request.args.get('month')), 'folha.xlsx')
    return jsonify({'success': True, 'payrolls': [p.to_dict() for p in items]})

@financial_bp.route('/payroll', methods=['POST'])
@login_required(User.ROLE_ADMIN)
def create_payroll():
    data = get_json_data()
    if data.get('all_employees'):
        created, skipped = PayrollService.generate_month(g.tenant_id, data.get('reference_month'))
        return jsonify({'success': True, 'message': f'{created} payslips created',
                        'created': created, 'skipped': skipped}), 201

    success, payroll, message = PayrollService.create_payroll(
        g.tenant_id, data.get('employee_id'), data.get('reference_month'),
        benefits=data.get('benefits', 0), discounts=data.get('discounts', 0),
        gross_salary=data.get('gross_salary')
    )
    if not success:
        return _result(False, message)
    return jsonify({'success': True, 'message': message, 'payroll': payroll.to_dict()}), 201

@financial_bp.route('/payroll/<int:payroll_id>/pay', methods=['POST'])
@login_required(User.ROLE_ADMIN)
def pay_payroll(payroll_id):
    data = get_json_data()
    success, expense, message = PayrollService.pay_payroll(
        g.tenant_id, payroll_id, user_id=g.current_user.id,
        payment_date=data.get('payment_date'), payment_method=data.get('payment_method')
    )
    if not success:
        return _result(False, message, 404 if message == 'Payroll not found' else 400)
    return jsonify({'success': True, 'message': message, 'expense': expense.to_dict()})

@financial_bp.route('/payroll/<int:payroll_id>/reverse', methods=['POST'])
@login_required(User.ROLE_ADMIN)
def reverse_payroll(payroll_id):
    success, message = PayrollService.reverse_payroll_payment(g.tenant_id, payroll_id)
    return _result(success, message, 404 if message == 'Payroll not found' else 400)

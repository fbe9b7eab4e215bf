"""
Tests for the category tree and the revenue/expense ledgers
"""

import unittest
from datetime import date, timedelta

from database import db
from models.financial import Category, Revenue, Expense
from services.category_service import CategoryService, CategorySelection
from services.finance_service import FinanceService
from tests.base_test import BaseTestCase

class TestCategoryService(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant()

    def test_resolve_path_creates_missing_levels(self):
        """Test a three level expense path is created top down"""
        success, leaf, _ = CategoryService.resolve_path(
            self.tenant.id, Category.TYPE_EXPENSE, ['Despesas Fixas', 'Utilidades', 'Energia']
        )

        self.assertTrue(success)
        self.assertEqual(leaf.level, 3)
        self.assertEqual(leaf.path(), ['Despesas Fixas', 'Utilidades', 'Energia'])
        self.assertEqual(Category.query.count(), 3)

    def test_resolve_path_reuses_existing_nodes(self):
        """Test resolving an overlapping path only adds the new leaf"""
        CategoryService.resolve_path(self.tenant.id, Category.TYPE_EXPENSE, ['Despesas Fixas', 'Utilidades', 'Energia'])
        success, leaf, _ = CategoryService.resolve_path(
            self.tenant.id, Category.TYPE_EXPENSE, ['despesas fixas', ' UTILIDADES ', 'Água']
        )

        self.assertTrue(success)
        self.assertEqual(Category.query.count(), 4)
        self.assertEqual(leaf.parent.name, 'Utilidades')
        self.assertEqual(leaf.parent.parent.name, 'Despesas Fixas')

    def test_accented_names_match_case_insensitively(self):
        """Test non-ASCII capitals resolve to the existing node"""
        for names in (['Água'], ['Água'], ['água'], [' ÁGUA ']):
            success, node, _ = CategoryService.resolve_path(self.tenant.id, Category.TYPE_EXPENSE, names)
            self.assertTrue(success)

        self.assertEqual(Category.query.count(), 1)
        self.assertEqual(node.name, 'Água')
        self.assertEqual(CategoryService.find(self.tenant.id, Category.TYPE_EXPENSE, 'ágUA').id, node.id)

    def test_same_name_under_different_parents(self):
        """Test lookups are scoped to the parent"""
        _, first, _ = CategoryService.resolve_path(self.tenant.id, Category.TYPE_EXPENSE, ['Pessoal', 'Outros'])
        _, second, _ = CategoryService.resolve_path(self.tenant.id, Category.TYPE_EXPENSE, ['Material', 'Outros'])

        self.assertNotEqual(first.id, second.id)

    def test_oldest_match_wins(self):
        """Test duplicate names resolve to the lowest id"""
        for name in ('Eventos', 'EVENTOS'):
            db.session.add(Category(tenant_id=self.tenant.id, type=Category.TYPE_INCOME, name=name, level=1))
        db.session.commit()
        oldest = Category.query.order_by(Category.id).first()

        found = CategoryService.find(self.tenant.id, Category.TYPE_INCOME, 'eventos')
        self.assertEqual(found.id, oldest.id)

    def test_types_and_tenants_are_separate(self):
        """Test income and expense trees and other schools never share nodes"""
        other = self.create_tenant('Outra Escola')
        _, income, _ = CategoryService.resolve_path(self.tenant.id, Category.TYPE_INCOME, ['Outros'])
        _, expense, _ = CategoryService.resolve_path(self.tenant.id, Category.TYPE_EXPENSE, ['Outros'])
        _, foreign, _ = CategoryService.resolve_path(other.id, Category.TYPE_INCOME, ['Outros'])

        self.assertEqual(len({income.id, expense.id, foreign.id}), 3)

    def test_depth_limits(self):
        """Test income allows one level and expense three"""
        success, _, message = CategoryService.resolve_path(
            self.tenant.id, Category.TYPE_INCOME, ['Mensalidades', 'Turma A']
        )
        self.assertFalse(success)
        self.assertIn('at most 1', message)

        success, _, _ = CategoryService.resolve_path(
            self.tenant.id, Category.TYPE_EXPENSE, ['A', 'B', 'C', 'D']
        )
        self.assertFalse(success)
        self.assertEqual(Category.query.count(), 0)

    def test_empty_path_rejected(self):
        """Test blank names do not create categories"""
        success, _, message = CategoryService.resolve_path(self.tenant.id, Category.TYPE_EXPENSE, ['', '  '])
        self.assertFalse(success)
        self.assertEqual(message, 'Category is required')

    def test_select_level_clears_deeper_levels(self):
        """Test changing a level resets the ones below it"""
        state = CategorySelection()
        CategoryService.select_level(state, 0, Category.TYPE_EXPENSE)
        CategoryService.select_level(state, 1, 'Despesas Fixas')
        CategoryService.select_level(state, 2, 'Utilidades')
        CategoryService.select_level(state, 3, 'Energia')
        state.category_id = 99

        CategoryService.select_level(state, 1, 'Material')

        self.assertEqual(state.levels, ['Material', None, None])
        self.assertIsNone(state.category_id)

    def test_select_type_resets_everything(self):
        """Test switching the transaction type clears the whole path"""
        state = CategorySelection(Category.TYPE_EXPENSE)
        CategoryService.select_level(state, 1, 'Pessoal')
        CategoryService.select_level(state, 0, Category.TYPE_INCOME)

        self.assertEqual(state.levels, [None, None, None])
        self.assertEqual(state.max_depth, 1)
        with self.assertRaises(ValueError):
            CategoryService.select_level(state, 2, 'Turma A')

    def test_apply_selection(self):
        """Test the picker state resolves to the stored leaf id"""
        state = CategorySelection(Category.TYPE_EXPENSE)
        CategoryService.select_level(state, 1, 'Despesas Fixas')
        CategoryService.select_level(state, 2, 'Aluguel')

        success, category, _ = CategoryService.apply_selection(self.tenant.id, state)

        self.assertTrue(success)
        self.assertEqual(state.category_id, category.id)
        self.assertEqual(state.names(), ['Despesas Fixas', 'Aluguel'])

    def test_tree_and_delete(self):
        """Test the nested tree and that only unused leaves can be deleted"""
        _, leaf, _ = CategoryService.resolve_path(self.tenant.id, Category.TYPE_EXPENSE, ['Material', 'Escritório'])

        tree = CategoryService.get_tree(self.tenant.id, Category.TYPE_EXPENSE)
        self.assertEqual(tree[0]['name'], 'Material')
        self.assertEqual(tree[0]['children'][0]['name'], 'Escritório')

        success, message = CategoryService.delete_category(self.tenant.id, leaf.parent_id)
        self.assertFalse(success)
        self.assertEqual(message, 'Category has subcategories')

        success, _ = CategoryService.delete_category(self.tenant.id, leaf.id)
        self.assertTrue(success)

class TestFinanceService(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant()
        self.user = self.create_user(self.tenant)

    def _expense(self, **overrides):
        data = {
            'date': '2025-03-10',
            'amount': '320.00',
            'description': 'Conta de luz',
            'category_path': ['Despesas Fixas', 'Utilidades', 'Energia'],
            'status': 'pago'
        }
        data.update(overrides)
        return FinanceService.record_transaction(self.tenant.id, self.user.id, Category.TYPE_EXPENSE, data)

    def test_record_expense(self):
        """Test an expense lands on the leaf category"""
        success, expense, _ = self._expense()

        self.assertTrue(success)
        self.assertEqual(expense.category.name, 'Energia')
        self.assertEqual(expense.status, 'pago')
        self.assertEqual(expense.created_by, self.user.id)

    def test_record_income(self):
        """Test an income entry with a one level category"""
        student = self.create_student(self.tenant)
        success, revenue, _ = FinanceService.record_transaction(
            self.tenant.id, self.user.id, Category.TYPE_INCOME,
            {'date': '2025-03-10', 'amount': 150, 'category_path': ['Eventos'], 'student_id': student.id}
        )

        self.assertTrue(success)
        self.assertEqual(revenue.student_id, student.id)
        self.assertEqual(revenue.category.level, 1)

    def test_parent_category_rejected(self):
        """Test entries must use the most specific category"""
        self._expense()
        parent = Category.query.filter_by(name='Utilidades').first()

        success, _, message = self._expense(category_path=None, category_id=parent.id)

        self.assertFalse(success)
        self.assertEqual(message, 'Select the most specific category')

    def test_category_type_must_match(self):
        """Test an income category cannot book an expense"""
        _, income, _ = CategoryService.resolve_path(self.tenant.id, Category.TYPE_INCOME, ['Eventos'])

        success, _, message = self._expense(category_path=None, category_id=income.id)

        self.assertFalse(success)
        self.assertIn('expense', message)

    def test_invalid_entries(self):
        """Test amount, date and status validation"""
        tomorrow = (date.today() + timedelta(days=1)).isoformat()

        self.assertFalse(self._expense(amount='0')[0])
        self.assertFalse(self._expense(amount='abc')[0])
        self.assertEqual(self._expense(date=tomorrow)[2], 'Date cannot be in the future')
        self.assertFalse(self._expense(status='quitado')[0])
        self.assertEqual(Expense.query.count(), 0)

    def test_failed_entry_creates_no_categories(self):
        """Test a rejected entry rolls back the categories it created"""
        success, _, message = FinanceService.record_transaction(
            self.tenant.id, self.user.id, Category.TYPE_INCOME,
            {'date': '2025-03-10', 'amount': 10, 'category_path': ['Doações'], 'student_id': 9999}
        )
        self.assertFalse(success)
        self.assertEqual(message, 'Student not found')
        self.assertIsNone(CategoryService.find(self.tenant.id, Category.TYPE_INCOME, 'Doações'))

    def test_metrics_count_only_paid_expenses(self):
        """Test pending expenses stay out of the balance"""
        self._expense(amount='300.00')
        self._expense(amount='200.00', status='pendente')
        FinanceService.record_transaction(
            self.tenant.id, self.user.id, Category.TYPE_INCOME,
            {'date': '2025-04-05', 'amount': '1000.00', 'category_path': ['Eventos']}
        )

        metrics = FinanceService.get_metrics(self.tenant.id, 2025)

        self.assertEqual(metrics['total_income'], 1000.0)
        self.assertEqual(metrics['total_expense'], 300.0)
        self.assertEqual(metrics['balance'], 700.0)
        self.assertEqual(metrics['pending_expense'], 200.0)
        self.assertEqual(metrics['monthly'][2]['expense'], 300.0)
        self.assertEqual(metrics['monthly'][3]['income'], 1000.0)
        self.assertEqual(metrics['expense_by_category'][0]['category'], 'Despesas Fixas > Utilidades > Energia')

    def test_delete_entries(self):
        """Test manual entries can be deleted"""
        _, expense, _ = self._expense()
        success, _ = FinanceService.delete_expense(self.tenant.id, expense.id)
        self.assertTrue(success)
        self.assertEqual(Expense.query.count(), 0)

        other = self.create_tenant('Outra Escola')
        _, revenue, _ = FinanceService.record_transaction(
            self.tenant.id, self.user.id, Category.TYPE_INCOME,
            {'date': '2025-04-05', 'amount': '50', 'category_path': ['Eventos']}
        )
        success, message = FinanceService.delete_revenue(other.id, revenue.id)
        self.assertFalse(success)
        self.assertEqual(message, 'Revenue not found')
        self.assertEqual(Revenue.query.count(), 1)

if __name__ == '__main__':
    unittest.main()

"""
Category service for Escola Gestão
Hierarchical income/expense category lookup and creation
"""

import logging

from database import db, fold_name
from models.financial import Category

logger = logging.getLogger(__name__)

class CategorySelection:
    """Selection state of the category picker in transaction entry

    ``levels`` holds the typed or picked name for each depth, ``category_id``
    is the resolved final category once the path has been saved.
    """

    def __init__(self, transaction_type=None):
        self.transaction_type = transaction_type
        self.levels = [None] * Category.MAX_DEPTH
        self.category_id = None

    @property
    def max_depth(self):
        return 1 if self.transaction_type == Category.TYPE_INCOME else Category.MAX_DEPTH

    def names(self):
        """Selected names down to the first empty level"""
        names = []
        for value in self.levels[:self.max_depth]:
            if not value:
                break
            names.append(value)
        return names

    def to_dict(self):
        return {
            'transaction_type': self.transaction_type,
            'levels': list(self.levels),
            'category_id': self.category_id
        }

class CategoryService:
    """Category service class"""

    @staticmethod
    def find(tenant_id, category_type, name, parent_id=None):
        """Oldest category matching the name (case-insensitive) under a parent"""
        query = Category.query.filter(
            Category.tenant_id == tenant_id,
            Category.type == category_type,
            Category.name_key == fold_name(name)
        )
        if parent_id is None:
            query = query.filter(Category.parent_id.is_(None))
        else:
            query = query.filter(Category.parent_id == parent_id)
        return query.order_by(Category.id).first()

    @staticmethod
    def children(tenant_id, category_type, parent_id=None):
        """One level of the tree, ordered by name"""
        query = Category.query.filter_by(tenant_id=tenant_id, type=category_type)
        if parent_id is None:
            query = query.filter(Category.parent_id.is_(None))
        else:
            query = query.filter_by(parent_id=parent_id)
        return query.order_by(Category.name, Category.id).all()

    @staticmethod
    def resolve_path(tenant_id, category_type, names, commit=True):
        """Walk 1-3 names from the root, creating missing nodes under the current parent

        Returns (success, category, message) with the deepest category.
        """
        try:
            if category_type not in Category.TYPES:
                return False, None, "Transaction type must be income or expense"

            names = [n.strip() for n in (names or []) if n and n.strip()]
            if not names:
                return False, None, "Category is required"

            max_depth = 1 if category_type == Category.TYPE_INCOME else Category.MAX_DEPTH
            if len(names) > max_depth:
                return False, None, f"{category_type.capitalize()} categories allow at most {max_depth} level(s)"

            parent = None
            for depth, name in enumerate(names, start=1):
                node = CategoryService.find(tenant_id, category_type, name, parent.id if parent else None)
                if node is None:
                    node = Category(
                        tenant_id=tenant_id,
                        type=category_type,
                        name=name,
                        parent_id=parent.id if parent else None,
                        level=depth
                    )
                    db.session.add(node)
                    db.session.flush()
                    logger.info("Created %s category %r at level %s for tenant %s",
                                category_type, name, depth, tenant_id)
                parent = node

            if commit:
                db.session.commit()
            return True, parent, "Category resolved"

        except Exception as e:
            db.session.rollback()
            logger.error("Error resolving category path %s: %s", names, e)
            return False, None, f"Error resolving category: {str(e)}"

    @staticmethod
    def select_level(state, level, value):
        """Apply a picker change; level 0 is the transaction type

        Changing a level clears every deeper level and the resolved category.
        """
        if level == 0:
            if value not in Category.TYPES:
                raise ValueError("Transaction type must be income or expense")
            state.transaction_type = value
            state.levels = [None] * Category.MAX_DEPTH
            state.category_id = None
            return state

        if level < 1 or level > state.max_depth:
            raise ValueError(f"Level must be between 1 and {state.max_depth}")

        state.levels[level - 1] = value or None
        for deeper in range(level, Category.MAX_DEPTH):
            state.levels[deeper] = None
        state.category_id = None
        return state

    @staticmethod
    def apply_selection(tenant_id, state):
        """Resolve the picker state into a stored category id"""
        success, category, message = CategoryService.resolve_path(
            tenant_id, state.transaction_type, state.names()
        )
        if success:
            state.category_id = category.id
        return success, category, message

    @staticmethod
    def get_tree(tenant_id, category_type):
        """Nested category tree for one transaction type"""
        def build(node):
            data = node.to_dict()
            data['children'] = [build(child) for child in
                                node.children.order_by(Category.name, Category.id).all()]
            return data

        return [build(root) for root in CategoryService.children(tenant_id, category_type)]

    @staticmethod
    def delete_category(tenant_id, category_id):
        """Delete an unused leaf category"""
        from models.financial import Revenue, Expense
        try:
            category = db.session.get(Category, category_id)
            if not category or category.tenant_id != tenant_id:
                return False, "Category not found"

            if category.has_children():
                return False, "Category has subcategories"

            in_use = (Revenue.query.filter_by(category_id=category.id).first() or
                      Expense.query.filter_by(category_id=category.id).first())
            if in_use:
                return False, "Category is used by transactions"

            db.session.delete(category)
            db.session.commit()
            return True, "Category deleted successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error deleting category: {str(e)}"

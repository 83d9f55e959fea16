"""Category domain service."""

from typing import Optional, Union

from finctl.database.base import Database
from finctl.domain.entities import Category, CategoryType
from finctl.domain.errors import ConflictError, ValidationError
from finctl.logging_setup import get_logger

logger = get_logger("finctl.domain.category")

# Default chart of categories for a small business ledger
DEFAULT_CATEGORIES = [
    ("Sales", CategoryType.INCOME),
    ("Services", CategoryType.INCOME),
    ("Other Income", CategoryType.INCOME),
    ("Merchandise Purchases", CategoryType.EXPENSE),
    ("Raw Material Cost", CategoryType.EXPENSE),
    ("Supplier Payments", CategoryType.EXPENSE),
    ("Sales Commission", CategoryType.EXPENSE),
    ("Marketing", CategoryType.EXPENSE),
    ("Salaries", CategoryType.EXPENSE),
    ("Rent", CategoryType.EXPENSE),
    ("Utilities", CategoryType.EXPENSE),
    ("Internet & Phone", CategoryType.EXPENSE),
    ("Taxes & Fees", CategoryType.EXPENSE),
    ("Other Expenses", CategoryType.EXPENSE),
]


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self, tenant_id: str, name: str, category_type: Union[CategoryType, str]
    ) -> Category:
        """Create a category.

        Args:
            tenant_id: Tenant ID
            name: Category name
            category_type: "income" or "expense"

        Returns:
            The created category

        Raises:
            ValidationError: If the name is empty or the type is unknown
            ConflictError: If the tenant already has a category with that name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name cannot be empty")
        try:
            category_type = CategoryType(category_type)
        except ValueError:
            raise ValidationError(
                f"Invalid category type '{category_type}'. Must be 'income' or 'expense'"
            ) from None

        if self.get_category_by_name(tenant_id, name) is not None:
            raise ConflictError(f"Category '{name}' already exists for tenant '{tenant_id}'")

        category = self.db.create_category(tenant_id, name, category_type.value)
        logger.info("Created %s category '%s' for tenant %s", category_type.value, name, tenant_id)
        return category

    def get_category(self, tenant_id: str, category_id: int) -> Optional[Category]:
        return self.db.get_category(tenant_id, category_id)

    def get_category_by_name(self, tenant_id: str, name: str) -> Optional[Category]:
        """Case-insensitive lookup by name."""
        wanted = name.strip().lower()
        for category in self.db.list_categories(tenant_id):
            if category.name.lower() == wanted:
                return category
        return None

    def list_categories(
        self, tenant_id: str, category_type: Optional[CategoryType] = None
    ) -> list[Category]:
        """List a tenant's categories, optionally of one type."""
        categories = self.db.list_categories(tenant_id)
        if category_type is not None:
            categories = [c for c in categories if c.type == category_type]
        return categories

    def ensure_default_categories(self, tenant_id: str) -> list[Category]:
        """Seed the default categories for a tenant that has none.

        Returns:
            The categories that were created; empty if the tenant already had some
        """
        if self.db.list_categories(tenant_id):
            return []

        def create_defaults() -> list[Category]:
            created = []
            for name, category_type in DEFAULT_CATEGORIES:
                created.append(self.db.create_category(tenant_id, name, category_type.value))
            return created

        created = self.db.run_in_transaction(create_defaults)
        logger.info("Created %d default categories for tenant %s", len(created), tenant_id)
        return created

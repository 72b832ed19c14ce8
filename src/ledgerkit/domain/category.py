"""Category domain service."""

import logging
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.access import require_category_access
from ledgerkit.domain.entities import Category as CategoryEntity
from ledgerkit.domain.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Global categories every user sees.
DEFAULT_GLOBAL_CATEGORIES = [
    "Salary",
    "Investment",
    "Other Income",
    "Housing",
    "Transportation",
    "Health",
    "Education",
    "Shopping",
    "Leisure",
    "Personal",
    "Other",
]


class CategoryService:
    """Service for reading and creating categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def ensure_default_categories(self) -> int:
        """Create any missing default global category.

        Returns:
            Number of categories created
        """
        existing = {cat.name for cat in self.db.list_categories(owner_id=None)}
        created = 0
        for name in DEFAULT_GLOBAL_CATEGORIES:
            if name not in existing:
                self.db.create_category(name=name)
                created += 1
        if created:
            logger.info("Created %d default categories", created)
        return created

    def create_category(self, actor_id: str, name: str, parent_id: Optional[int] = None) -> int:
        """Create a category owned by the actor.

        Args:
            actor_id: Acting user
            name: Category name
            parent_id: Optional parent category ID (global or owned by actor)

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is blank
            NotFoundError: If the parent doesn't exist
            ForbiddenError: If the parent belongs to another user
        """
        if not name or not name.strip():
            raise ValidationError("Category name is required")
        require_category_access(self.db, actor_id, parent_id)
        return self.db.create_category(name=name.strip(), parent_id=parent_id, owner_id=actor_id)

    def get_category(self, category_id: int) -> CategoryEntity:
        """Get category by ID.

        Raises:
            NotFoundError: If category doesn't exist
        """
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def list_categories(self, actor_id: str) -> list[CategoryEntity]:
        """List global categories plus the actor's own, by name."""
        self.ensure_default_categories()
        return self.db.list_categories(owner_id=actor_id)

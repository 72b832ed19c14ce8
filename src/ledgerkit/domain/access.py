"""Account and category access checks shared by the services.

Owners may read and write their accounts. A share grants read access to any
role and write access to EDITOR and ADMIN. Global categories (no owner) are
usable by everyone, owned categories only by their owner.
"""

from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account, Category, ShareRole
from ledgerkit.domain.errors import (
    ForbiddenError,
    NotFoundError,
    account_not_found,
    account_read_denied,
    account_write_denied,
    category_access_denied,
    category_not_found,
)

WRITE_ROLES = frozenset({ShareRole.EDITOR, ShareRole.ADMIN})


def _get_account(db: Database, account_id: int) -> Account:
    account = db.get_account(account_id)
    if account is None:
        raise NotFoundError(account_not_found(account_id))
    return account


def can_read(db: Database, actor_id: str, account: Account) -> bool:
    if account.owner_id == actor_id:
        return True
    return db.get_account_share(account.id, actor_id) is not None


def can_write(db: Database, actor_id: str, account: Account) -> bool:
    if account.owner_id == actor_id:
        return True
    share = db.get_account_share(account.id, actor_id)
    return share is not None and share.role in WRITE_ROLES


def require_readable_account(db: Database, actor_id: str, account_id: int) -> Account:
    """Load an account the actor may see.

    Raises:
        NotFoundError: If the account does not exist
        ForbiddenError: If the actor has no role on it
    """
    account = _get_account(db, account_id)
    if not can_read(db, actor_id, account):
        raise ForbiddenError(account_read_denied(account_id))
    return account


def require_writable_account(db: Database, actor_id: str, account_id: int) -> Account:
    """Load an account the actor may record transactions on.

    Raises:
        NotFoundError: If the account does not exist
        ForbiddenError: If the actor is neither owner, editor nor admin
    """
    account = _get_account(db, account_id)
    if not can_write(db, actor_id, account):
        raise ForbiddenError(account_write_denied(account_id))
    return account


def require_category_access(
    db: Database, actor_id: str, category_id: Optional[int]
) -> Optional[Category]:
    """Check the actor may use a category. None passes through."""
    if category_id is None:
        return None
    category = db.get_category(category_id)
    if category is None:
        raise NotFoundError(category_not_found(category_id))
    if category.owner_id is not None and category.owner_id != actor_id:
        raise ForbiddenError(category_access_denied(category_id))
    return category

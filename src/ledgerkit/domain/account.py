"""Account domain service."""

import logging
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.database.errors import UniqueViolation
from ledgerkit.domain.access import require_readable_account, require_writable_account
from ledgerkit.domain.entities import Account as AccountEntity
from ledgerkit.domain.entities import AccountType, CreditCardInfo, ShareRole
from ledgerkit.domain.errors import (
    ConflictError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    duplicate_account_name,
)
from ledgerkit.utils.money import quantize_amount

logger = logging.getLogger(__name__)


def _validate_day(value: Optional[int], label: str) -> None:
    if value is not None and not 1 <= value <= 31:
        raise ValidationError(f"{label} must be between 1 and 31")


def _validate_limit(value: Optional[Decimal]) -> None:
    if value is not None and value < 0:
        raise ValidationError("Credit limit cannot be negative")


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        owner_id: str,
        name: str,
        type: AccountType = AccountType.STANDARD,
        initial_balance: Decimal = Decimal("0"),
        closing_day: Optional[int] = None,
        due_day: Optional[int] = None,
        credit_limit: Optional[Decimal] = None,
        brand: Optional[str] = None,
    ) -> int:
        """Create a new account.

        Credit accounts always start at a zero balance; their billing data
        lives in the attached card info.

        Args:
            owner_id: Owner user ID
            name: Account name (unique per owner)
            type: STANDARD or CREDIT
            initial_balance: Opening balance (ignored for CREDIT)
            closing_day: Invoice closing day, required for CREDIT
            due_day: Invoice due day, required for CREDIT
            credit_limit: Optional card limit
            brand: Optional card brand

        Returns:
            Account ID

        Raises:
            ValidationError: If card data is missing, misplaced or out of range
            ConflictError: If the owner already has an account with this name
        """
        if not name or not name.strip():
            raise ValidationError("Account name is required")
        name = name.strip()

        card = None
        if type == AccountType.CREDIT:
            if closing_day is None or due_day is None:
                raise ValidationError("Credit accounts need a closing day and a due day")
            _validate_day(closing_day, "Closing day")
            _validate_day(due_day, "Due day")
            _validate_limit(credit_limit)
            card = CreditCardInfo(
                closing_day=closing_day,
                due_day=due_day,
                credit_limit=quantize_amount(credit_limit) if credit_limit is not None else None,
                brand=brand,
            )
            initial_balance = Decimal("0")
        elif any(v is not None for v in (closing_day, due_day, credit_limit, brand)):
            raise ValidationError("Card fields are only allowed on credit accounts")

        if any(acc.name == name for acc in self.db.list_accounts(owner_id=owner_id)):
            raise ConflictError(duplicate_account_name(name))

        try:
            account_id = self.db.create_account(
                name=name,
                type=type,
                owner_id=owner_id,
                initial_balance=quantize_amount(initial_balance),
                credit_card_info=card,
            )
        except UniqueViolation as e:
            raise ConflictError(duplicate_account_name(name)) from e

        logger.info("Created %s account %d for %s", type.value, account_id, owner_id)
        return account_id

    def get_account(self, actor_id: str, account_id: int) -> AccountEntity:
        """Get an account the actor may see.

        Raises:
            NotFoundError: If account doesn't exist
            ForbiddenError: If the actor has no access to it
        """
        return require_readable_account(self.db, actor_id, account_id)

    def list_accounts(self, owner_id: str) -> list[AccountEntity]:
        """List accounts owned by or shared with a user."""
        return self.db.list_accessible_accounts(owner_id)

    def update_account(
        self,
        actor_id: str,
        account_id: int,
        name: Optional[str] = None,
        closing_day: Optional[int] = None,
        due_day: Optional[int] = None,
        credit_limit: Optional[Decimal] = None,
        brand: Optional[str] = None,
    ) -> AccountEntity:
        """Rename an account or change its card data.

        Invoice months already assigned to entries are kept as they are.

        Raises:
            NotFoundError: If account doesn't exist
            ForbiddenError: If the actor may not edit it, or card fields are
                sent for a non-credit account
            ValidationError: If values are out of range
            ConflictError: If the new name is taken
        """
        account = require_writable_account(self.db, actor_id, account_id)
        card_fields = (closing_day, due_day, credit_limit, brand)
        has_card_fields = any(v is not None for v in card_fields)

        if has_card_fields and account.type != AccountType.CREDIT:
            raise ForbiddenError("Card fields can only be changed on credit accounts")

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Account name is required")
            siblings = self.db.list_accounts(owner_id=account.owner_id)
            if any(acc.id != account_id and acc.name == name for acc in siblings):
                raise ConflictError(duplicate_account_name(name))

        card = None
        if has_card_fields:
            _validate_day(closing_day, "Closing day")
            _validate_day(due_day, "Due day")
            _validate_limit(credit_limit)
            current = account.credit_card_info
            merged_closing = closing_day if closing_day is not None else getattr(current, "closing_day", None)
            merged_due = due_day if due_day is not None else getattr(current, "due_day", None)
            if merged_closing is None or merged_due is None:
                raise ValidationError("Credit accounts need a closing day and a due day")
            card = CreditCardInfo(
                closing_day=merged_closing,
                due_day=merged_due,
                credit_limit=(
                    quantize_amount(credit_limit)
                    if credit_limit is not None
                    else getattr(current, "credit_limit", None)
                ),
                brand=brand if brand is not None else getattr(current, "brand", None),
            )

        try:
            self.db.update_account(account_id, name=name, credit_card_info=card)
        except UniqueViolation as e:
            raise ConflictError(duplicate_account_name(name)) from e
        return self.db.get_account(account_id)

    def share_account(self, owner_id: str, account_id: int, user_id: str, role: ShareRole) -> None:
        """Grant a user a role on an account.

        Raises:
            NotFoundError: If account doesn't exist
            ForbiddenError: If the actor is not the owner or an admin
            ValidationError: If the user is the owner
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if account.owner_id != owner_id:
            share = self.db.get_account_share(account_id, owner_id)
            if share is None or share.role != ShareRole.ADMIN:
                raise ForbiddenError(f"No permission to share account {account_id}")
        if user_id == account.owner_id:
            raise ValidationError("The owner already has full access")

        self.db.set_account_share(account_id, user_id, role)
        logger.info("Shared account %d with %s as %s", account_id, user_id, role.value)

    def delete_account(self, actor_id: str, account_id: int) -> None:
        """Delete an account.

        Raises:
            NotFoundError: If account doesn't exist
            ForbiddenError: If the actor is not the owner
            DependencyError: If the account still has transactions
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if account.owner_id != actor_id:
            raise ForbiddenError(f"Only the owner can delete account {account_id}")

        transaction_count = self.db.get_account_transaction_count(account_id)
        if transaction_count > 0:
            raise DependencyError(account_delete_blocked(account_id, transaction_count))

        self.db.delete_account(account_id)
        logger.info("Deleted account %d", account_id)

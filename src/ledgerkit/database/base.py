"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkit.domain.entities import (
    Account,
    AccountShare,
    AccountType,
    Category,
    CreditCardInfo,
    DailySnapshot,
    ShareRole,
    Transaction,
    TransactionFilter,
    TransactionType,
)


class Database(ABC):
    """Abstract database interface for ledgerkit.

    Every write commits immediately unless it runs inside ``unit_of_work()``,
    in which case the whole block commits or rolls back together.
    Implementations raise ``ledgerkit.database.errors`` exceptions for
    constraint failures.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group writes atomically. Nested units join the outermost one."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        type: AccountType,
        owner_id: str,
        initial_balance: Decimal = Decimal("0"),
        credit_card_info: Optional[CreditCardInfo] = None,
    ) -> int:
        """Create an account (and its card info). Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID, including its credit card info."""
        pass

    @abstractmethod
    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        """List accounts, optionally only those owned by owner_id."""
        pass

    @abstractmethod
    def list_accessible_accounts(self, user_id: str) -> list[Account]:
        """List accounts the user owns or has been granted any role on."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        credit_card_info: Optional[CreditCardInfo] = None,
    ) -> None:
        """Update account name and/or replace its card info."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account and its shares and snapshots."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Count transactions posted to an account."""
        pass

    @abstractmethod
    def set_account_share(self, account_id: int, user_id: str, role: ShareRole) -> None:
        """Grant or change a user's role on an account."""
        pass

    @abstractmethod
    def get_account_share(self, account_id: int, user_id: str) -> Optional[AccountShare]:
        """Get the share a user holds on an account, if any."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self, name: str, parent_id: Optional[int] = None, owner_id: Optional[str] = None
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def list_categories(self, owner_id: Optional[str] = None) -> list[Category]:
        """List global categories plus those owned by owner_id."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(self, **fields: Any) -> int:
        """Create one transaction from column values. Returns transaction ID."""
        pass

    @abstractmethod
    def create_transactions(self, rows: list[dict[str, Any]]) -> list[int]:
        """Create several transactions atomically. Returns IDs in input order."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def get_transactions(self, transaction_ids: Iterable[int]) -> list[Transaction]:
        """Get transactions by ID, ordered by ID."""
        pass

    @abstractmethod
    def list_series(self, recurrence_id: str) -> list[Transaction]:
        """All transactions sharing a recurrence ID, by installment number."""
        pass

    @abstractmethod
    def list_transfer_legs(self, transfer_id: str) -> list[Transaction]:
        """Both legs of a transfer."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: int, **changes: Any) -> None:
        """Set column values on one transaction."""
        pass

    @abstractmethod
    def update_transactions_by_recurrence(
        self, recurrence_id: str, changes: dict[str, Any], min_installment: Optional[int] = None
    ) -> int:
        """Set column values on a series (optionally from an installment on). Returns row count."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete one transaction."""
        pass

    @abstractmethod
    def delete_transactions(self, transaction_ids: Iterable[int]) -> int:
        """Delete several transactions. Returns row count."""
        pass

    @abstractmethod
    def delete_transactions_by_recurrence(
        self, recurrence_id: str, min_installment: Optional[int] = None
    ) -> int:
        """Delete a series (optionally from an installment on). Returns row count."""
        pass

    @abstractmethod
    def mark_invoice_paid(self, account_id: int, invoice_month: str) -> list[Transaction]:
        """Mark unpaid EXPENSE entries of one invoice as paid. Returns them."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        criteria: TransactionFilter,
        visible_account_ids: Optional[Iterable[int]] = None,
    ) -> list[Transaction]:
        """List one page of transactions ordered by (date desc, id desc).

        Args:
            criteria: Filters, page size and cursor
            visible_account_ids: When given, restrict to these accounts
        """
        pass

    @abstractmethod
    def list_paid_transactions(self, account_id: int) -> list[Transaction]:
        """Paid transactions of an account ordered by (date, id) ascending."""
        pass

    @abstractmethod
    def list_account_transactions(
        self,
        account_ids: Iterable[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        types: Optional[Iterable[TransactionType]] = None,
    ) -> list[Transaction]:
        """Unpaginated transactions of some accounts, ascending by date."""
        pass

    @abstractmethod
    def get_paid_sums_by_type(
        self, account_ids: Iterable[int]
    ) -> dict[tuple[int, TransactionType], Decimal]:
        """Sum of paid amounts grouped by (account_id, type)."""
        pass

    @abstractmethod
    def get_unpaid_expense_sums(self, account_ids: Iterable[int]) -> dict[int, Decimal]:
        """Sum of unpaid EXPENSE amounts grouped by account_id."""
        pass

    # Snapshot operations
    @abstractmethod
    def upsert_snapshots(
        self, account_id: int, rows: list[tuple[date, Decimal]], calc_version: int
    ) -> int:
        """Insert or overwrite daily snapshots by (account_id, date). Returns row count."""
        pass

    @abstractmethod
    def get_snapshot(self, account_id: int, day: date) -> Optional[DailySnapshot]:
        """Get the snapshot of one account on one day."""
        pass

    @abstractmethod
    def list_snapshots(self, account_id: int, start_date: date, end_date: date) -> list[DailySnapshot]:
        """Snapshots of an account within [start_date, end_date], ascending."""
        pass

    @abstractmethod
    def count_snapshots(self, account_id: int, start_date: date, end_date: date) -> int:
        """Count snapshots of an account within [start_date, end_date]."""
        pass

    @abstractmethod
    def has_stale_snapshots(
        self, account_id: int, start_date: date, end_date: date, calc_version: int
    ) -> bool:
        """Whether any snapshot in the window was written by another calc_version."""
        pass

    @abstractmethod
    def sum_snapshots_by_date(
        self,
        account_ids: Iterable[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        dates: Optional[Iterable[date]] = None,
    ) -> list[tuple[date, Decimal]]:
        """Total balance across accounts per date, ascending.

        Either a [start_date, end_date] window or an explicit set of dates.
        """
        pass

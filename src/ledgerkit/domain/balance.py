"""Balance aggregation service.

Balances are derived on demand from grouped sums of paid entries. The daily
snapshot engine folds the same entries one by one; both go through
``opening_balance`` and ``balance_effect``. They agree on any day once every
paid entry is dated on or before it: the aggregate also counts paid entries
dated in the future, while a snapshot only folds entries up to its own day.
"""

from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account, AccountBalance, AccountType, TransactionType
from ledgerkit.domain.errors import NotFoundError, account_not_found

ZERO = Decimal("0.00")


def opening_balance(account: Account) -> Decimal:
    """Balance of an account before any entry. Credit cards carry no balance."""
    if account.type == AccountType.CREDIT:
        return ZERO
    return account.initial_balance or ZERO


def balance_effect(account_type: AccountType, txn_type: TransactionType, amount: Decimal) -> Decimal:
    """How much a paid amount (or a sum of them) moves an account's balance.

    Income always adds and expenses always subtract, whatever sign they were
    stored with. Transfers are stored signed per leg and count as they are.
    """
    if account_type == AccountType.CREDIT:
        return ZERO
    if txn_type == TransactionType.INCOME:
        return abs(amount)
    if txn_type == TransactionType.EXPENSE:
        return -abs(amount)
    return amount


class BalanceService:
    """Service computing current balances and available credit."""

    def __init__(self, db: Database):
        """Initialize balance service.

        Args:
            db: Database instance
        """
        self.db = db

    def account_balance(self, account_id: int) -> Decimal:
        """Current balance of an account (paid entries only).

        Args:
            account_id: Account ID

        Returns:
            Balance, always 0 for CREDIT accounts

        Raises:
            NotFoundError: If account doesn't exist
        """
        account = self._get_account(account_id)
        sums = self.db.get_paid_sums_by_type([account_id])
        return self._balance_from_sums(account, sums)

    def available_limit(self, account_id: int) -> Optional[Decimal]:
        """Credit still available on a card.

        Args:
            account_id: Account ID

        Returns:
            max(0, limit - pending expenses); None for non-CREDIT accounts or
            cards without a limit

        Raises:
            NotFoundError: If account doesn't exist
        """
        account = self._get_account(account_id)
        if not self._has_limit(account):
            return None
        unpaid = self.db.get_unpaid_expense_sums([account_id])
        return self._available_from_sums(account, unpaid)

    def list_account_balances(self, actor_id: str) -> list[AccountBalance]:
        """Every account visible to the actor with its balance and available limit.

        Uses two grouped queries for the whole listing.
        """
        accounts = self.db.list_accessible_accounts(actor_id)
        ids = [account.id for account in accounts]
        paid_sums = self.db.get_paid_sums_by_type(ids)
        unpaid = self.db.get_unpaid_expense_sums(ids)

        return [
            AccountBalance(
                account=account,
                balance=self._balance_from_sums(account, paid_sums),
                available_limit=(
                    self._available_from_sums(account, unpaid) if self._has_limit(account) else None
                ),
            )
            for account in accounts
        ]

    def _get_account(self, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    @staticmethod
    def _has_limit(account: Account) -> bool:
        return (
            account.type == AccountType.CREDIT
            and account.credit_card_info is not None
            and account.credit_card_info.credit_limit is not None
        )

    @staticmethod
    def _balance_from_sums(
        account: Account, sums: dict[tuple[int, TransactionType], Decimal]
    ) -> Decimal:
        balance = opening_balance(account)
        for txn_type in TransactionType:
            total = sums.get((account.id, txn_type))
            if total is not None:
                balance += balance_effect(account.type, txn_type, total)
        return balance

    @staticmethod
    def _available_from_sums(account: Account, unpaid: dict[int, Decimal]) -> Decimal:
        pending = abs(unpaid.get(account.id, ZERO))
        return max(ZERO, account.credit_card_info.credit_limit - pending)

"""Domain model entities for ledgerkit.

These are pure data classes representing business concepts, independent of
database schema. Services receive and return these; the database layer maps
its ORM rows onto them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class AccountType(str, Enum):
    STANDARD = "STANDARD"
    CREDIT = "CREDIT"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class RecurrenceFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    WEEKLY = "WEEKLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"


class ShareRole(str, Enum):
    VIEWER = "VIEWER"
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"


class MutationScope(str, Enum):
    """Which entries of a series an update or delete touches."""

    ONE = "ONE"
    THIS_AND_FOLLOWING = "THIS_AND_FOLLOWING"
    ALL = "ALL"


class SeriesKind(str, Enum):
    INSTALLMENT = "INSTALLMENT"
    RECURRENCE = "RECURRENCE"


class Granularity(str, Enum):
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"


@dataclass(frozen=True)
class CreditCardInfo:
    """Billing data embedded in a CREDIT account."""

    closing_day: int
    due_day: int
    credit_limit: Optional[Decimal] = None
    brand: Optional[str] = None


@dataclass(frozen=True)
class Account:
    """Account domain entity."""

    id: int
    name: str
    type: AccountType
    initial_balance: Decimal
    owner_id: str
    created_at: datetime
    credit_card_info: Optional[CreditCardInfo] = None

    @property
    def is_credit(self) -> bool:
        return self.type == AccountType.CREDIT


@dataclass(frozen=True)
class AccountShare:
    """Access granted on an account to a user other than its owner."""

    account_id: int
    user_id: str
    role: ShareRole


@dataclass(frozen=True)
class Category:
    """Category domain entity. owner_id None means a global category."""

    id: int
    name: str
    parent_id: Optional[int]
    owner_id: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Ledger entry domain entity.

    amount is signed: INCOME positive, EXPENSE negative, TRANSFER negative on
    the source leg and positive on the destination leg.
    """

    id: int
    account_id: int
    category_id: Optional[int]
    amount: Decimal
    description: Optional[str]
    date: date
    type: TransactionType
    is_paid: bool
    tags: Optional[tuple[str, ...]] = None
    transfer_id: Optional[str] = None
    recurrence_id: Optional[str] = None
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    recurrence_interval_days: Optional[int] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    purchase_date: Optional[date] = None
    invoice_month: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def in_series(self) -> bool:
        return self.recurrence_id is not None and self.installment_number is not None


@dataclass(frozen=True)
class DailySnapshot:
    """End-of-day balance of one account."""

    account_id: int
    date: date
    balance: Decimal
    calc_version: int


@dataclass(frozen=True)
class RecurrenceSpec:
    """How to repeat a transaction. Either count or forever must be given."""

    frequency: RecurrenceFrequency
    count: Optional[int] = None
    forever: bool = False
    interval_days: Optional[int] = None


@dataclass(frozen=True)
class CreateTransactionRequest:
    """A single user intent that may become one or many ledger entries.

    amount is the positive magnitude; the sign is derived from the type.
    """

    account_id: int
    type: TransactionType
    amount: Decimal
    description: str
    date: Optional[date] = None
    category_id: Optional[int] = None
    is_paid: bool = True
    total_installments: Optional[int] = None
    destination_account_id: Optional[int] = None
    recurrence: Optional[RecurrenceSpec] = None
    tags: Optional[tuple[str, ...]] = None
    invoice_month: Optional[str] = None


@dataclass(frozen=True)
class TransactionPatch:
    """Fields to change on one or more entries. None means unchanged."""

    category_id: Optional[int] = None
    clear_category: bool = False
    description: Optional[str] = None
    date: Optional[date] = None
    is_paid: Optional[bool] = None
    amount: Optional[Decimal] = None

    @property
    def affects_balance(self) -> bool:
        return self.date is not None or self.is_paid is not None or self.amount is not None

    @property
    def is_empty(self) -> bool:
        return (
            self.category_id is None
            and not self.clear_category
            and self.description is None
            and not self.affects_balance
        )


@dataclass(frozen=True)
class TransactionFilter:
    """Criteria for listing transactions."""

    account_id: Optional[int] = None
    category_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    type: Optional[TransactionType] = None
    text: Optional[str] = None
    invoice_month: Optional[str] = None
    limit: int = 30
    cursor_id: Optional[int] = None


@dataclass(frozen=True)
class TransactionPage:
    items: tuple[Transaction, ...]
    next_cursor_id: Optional[int]


@dataclass(frozen=True)
class BalanceImpact:
    """An account whose snapshots must be rebuilt from ``since`` onwards."""

    account_id: int
    since: date


@dataclass(frozen=True)
class LedgerChange:
    """Outcome of a create, update or delete.

    impacts must be handed to SnapshotService.apply once the change is
    committed.
    """

    transactions: tuple[Transaction, ...] = ()
    impacts: tuple[BalanceImpact, ...] = ()
    deleted_ids: tuple[int, ...] = ()
    single: bool = False

    @property
    def result(self) -> Union[Transaction, list[Transaction]]:
        """One entry for single-entry outcomes, otherwise the list of entries."""
        if self.single:
            return self.transactions[0]
        return list(self.transactions)


@dataclass(frozen=True)
class SeriesGroup:
    """Entries sharing one recurrence_id, tagged with what kind of series it is."""

    kind: SeriesKind
    recurrence_id: str
    members: tuple[Transaction, ...] = field(default_factory=tuple)

    @classmethod
    def from_members(cls, members: list[Transaction]) -> "SeriesGroup":
        if not members:
            raise ValueError("A series needs at least one member")
        recurrence_id = members[0].recurrence_id
        if recurrence_id is None or any(m.recurrence_id != recurrence_id for m in members):
            raise ValueError("Series members must share one recurrence_id")
        kind = (
            SeriesKind.RECURRENCE
            if any(m.recurrence_frequency is not None for m in members)
            else SeriesKind.INSTALLMENT
        )
        ordered = sorted(members, key=lambda m: (m.installment_number or 0, m.id))
        return cls(kind=kind, recurrence_id=recurrence_id, members=tuple(ordered))

    def select(self, anchor: Transaction, scope: MutationScope) -> list[Transaction]:
        """Members touched by a mutation of ``anchor`` with the given scope."""
        if scope == MutationScope.ALL:
            return list(self.members)
        if scope == MutationScope.THIS_AND_FOLLOWING and anchor.installment_number is not None:
            return [
                m for m in self.members
                if (m.installment_number or 0) >= anchor.installment_number
            ]
        return [m for m in self.members if m.id == anchor.id]


@dataclass(frozen=True)
class AccountBalance:
    """Listing view of an account with its derived figures."""

    account: Account
    balance: Decimal
    available_limit: Optional[Decimal]


@dataclass(frozen=True)
class BalancePoint:
    """One point of a balance history curve."""

    date: date
    label: str
    period_start: date
    period_end: date
    balance: Decimal
    delta: Optional[Decimal]
    changed: bool


@dataclass(frozen=True)
class CashFlowRow:
    period: str
    income: Decimal
    expense: Decimal

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class CategorySpending:
    """Expense total of one category within a report window."""

    category_id: Optional[int]
    category_name: str
    amount: Decimal
    percentage: Decimal

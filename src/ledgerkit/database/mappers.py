"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from decimal import Decimal
from typing import Optional

from ledgerkit.domain import entities as domain
from ledgerkit.database.models import (
    Account as ORMAccount,
    AccountShare as ORMAccountShare,
    Category as ORMCategory,
    CreditCardInfo as ORMCreditCardInfo,
    DailySnapshot as ORMDailySnapshot,
    Transaction as ORMTransaction,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(value).quantize(Decimal("0.01"))


def credit_card_info_to_domain(orm_info: Optional[ORMCreditCardInfo]) -> Optional[domain.CreditCardInfo]:
    """Convert SQLAlchemy CreditCardInfo model to domain CreditCardInfo."""
    if orm_info is None:
        return None
    return domain.CreditCardInfo(
        closing_day=orm_info.closing_day,
        due_day=orm_info.due_day,
        credit_limit=_decimal(orm_info.credit_limit),
        brand=orm_info.brand,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        type=domain.AccountType(orm_account.type),
        initial_balance=_decimal(orm_account.initial_balance),
        owner_id=orm_account.owner_id,
        created_at=orm_account.created_at,
        credit_card_info=credit_card_info_to_domain(orm_account.credit_card_info),
    )


def account_share_to_domain(orm_share: ORMAccountShare) -> domain.AccountShare:
    """Convert SQLAlchemy AccountShare model to domain AccountShare."""
    return domain.AccountShare(
        account_id=orm_share.account_id,
        user_id=orm_share.user_id,
        role=domain.ShareRole(orm_share.role),
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        parent_id=orm_category.parent_id,
        owner_id=orm_category.owner_id,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    frequency = orm_transaction.recurrence_frequency
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        category_id=orm_transaction.category_id,
        amount=_decimal(orm_transaction.amount),
        description=orm_transaction.description,
        date=orm_transaction.date,
        type=domain.TransactionType(orm_transaction.type),
        is_paid=bool(orm_transaction.is_paid),
        tags=tuple(orm_transaction.tags) if orm_transaction.tags else None,
        transfer_id=orm_transaction.transfer_id,
        recurrence_id=orm_transaction.recurrence_id,
        recurrence_frequency=domain.RecurrenceFrequency(frequency) if frequency else None,
        recurrence_interval_days=orm_transaction.recurrence_interval_days,
        installment_number=orm_transaction.installment_number,
        total_installments=orm_transaction.total_installments,
        purchase_date=orm_transaction.purchase_date,
        invoice_month=orm_transaction.invoice_month,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
    )


def snapshot_to_domain(orm_snapshot: ORMDailySnapshot) -> domain.DailySnapshot:
    """Convert SQLAlchemy DailySnapshot model to domain DailySnapshot."""
    return domain.DailySnapshot(
        account_id=orm_snapshot.account_id,
        date=orm_snapshot.date,
        balance=_decimal(orm_snapshot.balance),
        calc_version=orm_snapshot.calc_version,
    )

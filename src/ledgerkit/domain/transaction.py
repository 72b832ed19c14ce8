"""Transaction domain service.

Turns a single transaction request into persisted ledger entries (plain
entry, installment plan, recurring series or transfer pair) and applies
updates and deletions across a series or a transfer pair. Every write
returns a ``LedgerChange`` whose impacts the caller hands to
``SnapshotService.apply`` once the change is committed.
"""

import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.database.errors import (
    ForeignKeyViolation,
    RecordNotFound,
    StorageError,
    StorageValidationError,
    UniqueViolation,
)
from ledgerkit.domain.access import (
    can_read,
    require_category_access,
    require_readable_account,
    require_writable_account,
)
from ledgerkit.domain.entities import (
    Account,
    BalanceImpact,
    CreateTransactionRequest,
    LedgerChange,
    MutationScope,
    RecurrenceFrequency,
    SeriesGroup,
    Transaction,
    TransactionFilter,
    TransactionPage,
    TransactionPatch,
    TransactionType,
)
from ledgerkit.domain.errors import (
    ConflictError,
    DomainError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
    transaction_not_found,
)
from ledgerkit.domain.invoice import (
    compute_invoice_month,
    installment_invoice_month,
    require_credit_card_info,
    settle_invoice,
)
from ledgerkit.utils.date_math import DAYS, MONTHS, YEARS, parse_invoice_month, step_date
from ledgerkit.utils.money import from_minor_units, split_exact, to_minor_units

logger = logging.getLogger(__name__)

MAX_RECURRENCE_OCCURRENCES = 360
MAX_INSTALLMENTS = 360
MAX_CUSTOM_INTERVAL_DAYS = 3650
MAX_TAGS = 20
MAX_PAGE_SIZE = 100

_RECURRENCE_STEPS = {
    RecurrenceFrequency.MONTHLY: (MONTHS, 1),
    RecurrenceFrequency.WEEKLY: (DAYS, 7),
    RecurrenceFrequency.YEARLY: (YEARS, 1),
}


def translate_storage_error(error: Exception) -> DomainError:
    """Map a failure raised while writing entries to a domain error.

    Domain errors are returned unchanged. Foreign key failures name the
    missing record from the failing column.
    """
    if isinstance(error, DomainError):
        return error
    if isinstance(error, ForeignKeyViolation):
        field_name = error.field_name.lower()
        if "category" in field_name:
            return NotFoundError("Category not found")
        if "account" in field_name:
            return NotFoundError("Account not found")
        return NotFoundError("Related record not found")
    if isinstance(error, RecordNotFound):
        return NotFoundError("Record not found")
    if isinstance(error, UniqueViolation):
        return ConflictError(str(error))
    if isinstance(error, StorageValidationError):
        return ValidationError(str(error))
    return InternalError(f"Unexpected storage failure: {error}")


def signed_amount(txn_type: TransactionType, magnitude: Decimal, outgoing: bool = False) -> Decimal:
    """Apply the stored sign convention to a positive magnitude."""
    if txn_type == TransactionType.INCOME:
        return abs(magnitude)
    if txn_type == TransactionType.EXPENSE:
        return -abs(magnitude)
    return -abs(magnitude) if outgoing else abs(magnitude)


def _normalize_tags(tags: Optional[Iterable[str]]) -> Optional[list[str]]:
    if not tags:
        return None
    cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
    return cleaned or None


def _merge_impacts(pairs: Iterable[tuple[int, date]]) -> tuple[BalanceImpact, ...]:
    earliest: dict[int, date] = {}
    for account_id, day in pairs:
        if account_id not in earliest or day < earliest[account_id]:
            earliest[account_id] = day
    return tuple(
        BalanceImpact(account_id=account_id, since=earliest[account_id])
        for account_id in sorted(earliest)
    )


class TransactionService:
    """Service for recording and changing ledger entries."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    # Creation
    def create(self, actor_id: str, request: CreateTransactionRequest) -> LedgerChange:
        """Record a transaction request as one or more ledger entries.

        Args:
            actor_id: Acting user
            request: What to record

        Returns:
            LedgerChange with the created entries (``result`` is a single
            entry for plain entries, a list otherwise) and balance impacts

        Raises:
            ValidationError: If the request is malformed
            NotFoundError: If an account or category doesn't exist
            ForbiddenError: If the actor may not write to an account or use the
                category, or asks for a recurring series on a credit card
            InternalError: If a credit account has no card data
        """
        self._validate_request(request)
        try:
            change = self._create(actor_id, request)
        except Exception as e:
            translated = translate_storage_error(e)
            if translated is e:
                raise
            raise translated from e

        logger.info(
            "Created %d %s entr%s on account %d",
            len(change.transactions),
            request.type.value,
            "y" if len(change.transactions) == 1 else "ies",
            request.account_id,
        )
        return change

    def _validate_request(self, request: CreateTransactionRequest) -> None:
        if request.amount is None or Decimal(request.amount) <= 0:
            raise ValidationError("Amount must be greater than zero")
        if to_minor_units(request.amount) == 0:
            raise ValidationError("Amount must be at least 0.01")
        if not request.description or not request.description.strip():
            raise ValidationError("Description is required")

        installments = request.total_installments
        if installments is not None:
            if not 1 <= installments <= MAX_INSTALLMENTS:
                raise ValidationError(
                    f"Installments must be between 1 and {MAX_INSTALLMENTS}"
                )
            if installments > 1 and request.type != TransactionType.EXPENSE:
                raise ValidationError("Only expenses can be split into installments")

        if request.type == TransactionType.TRANSFER:
            if request.destination_account_id is None:
                raise ValidationError("A transfer needs a destination account")
            if request.destination_account_id == request.account_id:
                raise ValidationError("Cannot transfer to the same account")
        elif request.destination_account_id is not None:
            raise ValidationError("Destination account is only allowed for transfers")

        recurrence = request.recurrence
        if recurrence is not None:
            if request.type == TransactionType.TRANSFER:
                raise ValidationError("Transfers cannot repeat")
            if not recurrence.forever:
                if recurrence.count is None:
                    raise ValidationError("A recurrence needs a count or forever")
                if not 1 <= recurrence.count <= MAX_RECURRENCE_OCCURRENCES:
                    raise ValidationError(
                        f"Recurrence count must be between 1 and {MAX_RECURRENCE_OCCURRENCES}"
                    )
            if recurrence.frequency == RecurrenceFrequency.CUSTOM:
                interval = recurrence.interval_days
                if interval is None or not 1 <= interval <= MAX_CUSTOM_INTERVAL_DAYS:
                    raise ValidationError(
                        f"Custom recurrence needs an interval between 1 and "
                        f"{MAX_CUSTOM_INTERVAL_DAYS} days"
                    )

        tags = _normalize_tags(request.tags)
        if tags is not None and len(tags) > MAX_TAGS:
            raise ValidationError(f"At most {MAX_TAGS} tags are allowed")

        if request.invoice_month is not None:
            try:
                parse_invoice_month(request.invoice_month)
            except ValueError as e:
                raise ValidationError(str(e)) from e

    def _create(self, actor_id: str, request: CreateTransactionRequest) -> LedgerChange:
        origin = require_writable_account(self.db, actor_id, request.account_id)
        if origin.is_credit:
            require_credit_card_info(origin)
        require_category_access(self.db, actor_id, request.category_id)

        base_date = request.date or date.today()
        common = {
            "category_id": request.category_id,
            "description": request.description.strip(),
            "tags": _normalize_tags(request.tags),
        }

        if request.type == TransactionType.TRANSFER:
            return self._create_transfer(actor_id, request, origin, base_date, common)

        if request.recurrence is not None:
            if origin.is_credit:
                raise ForbiddenError("Recurring transactions are not allowed on credit cards")
            return self._create_recurring(request, origin, base_date, common)

        if (request.total_installments or 1) <= 1:
            return self._create_single(request, origin, base_date, common)

        return self._create_installments(request, origin, base_date, common)

    def _persist(self, rows: list[dict[str, Any]]) -> tuple[Transaction, ...]:
        ids = self.db.create_transactions(rows)
        by_id = {txn.id: txn for txn in self.db.get_transactions(ids)}
        return tuple(by_id[i] for i in ids)

    def _create_transfer(
        self,
        actor_id: str,
        request: CreateTransactionRequest,
        origin: Account,
        base_date: date,
        common: dict[str, Any],
    ) -> LedgerChange:
        destination = require_writable_account(self.db, actor_id, request.destination_account_id)
        invoice_month = None
        if destination.is_credit:
            info = require_credit_card_info(destination)
            invoice_month = request.invoice_month or compute_invoice_month(
                base_date, info.closing_day
            )

        transfer_id = str(uuid.uuid4())
        source_leg = {
            **common,
            "account_id": origin.id,
            "amount": signed_amount(TransactionType.TRANSFER, request.amount, outgoing=True),
            "date": base_date,
            "type": TransactionType.TRANSFER,
            "is_paid": False if origin.is_credit else request.is_paid,
            "transfer_id": transfer_id,
        }
        destination_leg = {
            **common,
            "account_id": destination.id,
            "amount": signed_amount(TransactionType.TRANSFER, request.amount),
            "date": base_date,
            "type": TransactionType.TRANSFER,
            "is_paid": request.is_paid,
            "transfer_id": transfer_id,
            "invoice_month": invoice_month,
        }

        settled: list[Transaction] = []
        with self.db.unit_of_work():
            legs = self._persist([source_leg, destination_leg])
            if destination.is_credit and request.is_paid:
                settled = settle_invoice(self.db, destination, invoice_month)

        destination_since = min([base_date] + [txn.date for txn in settled])
        return LedgerChange(
            transactions=legs,
            impacts=_merge_impacts([(origin.id, base_date), (destination.id, destination_since)]),
        )

    def _create_recurring(
        self,
        request: CreateTransactionRequest,
        origin: Account,
        base_date: date,
        common: dict[str, Any],
    ) -> LedgerChange:
        recurrence = request.recurrence
        count = MAX_RECURRENCE_OCCURRENCES if recurrence.forever else recurrence.count
        if recurrence.frequency == RecurrenceFrequency.CUSTOM:
            unit, step = DAYS, recurrence.interval_days
            interval_days = recurrence.interval_days
        else:
            unit, step = _RECURRENCE_STEPS[recurrence.frequency]
            interval_days = None

        recurrence_id = str(uuid.uuid4())
        amount = signed_amount(request.type, request.amount)
        rows = [
            {
                **common,
                "account_id": origin.id,
                "amount": amount,
                "date": step_date(base_date, unit, step * (i - 1)),
                "type": request.type,
                "is_paid": request.is_paid if i == 1 else False,
                "recurrence_id": recurrence_id,
                "recurrence_frequency": recurrence.frequency,
                "recurrence_interval_days": interval_days,
                "installment_number": i,
                "total_installments": count,
            }
            for i in range(1, count + 1)
        ]

        with self.db.unit_of_work():
            created = self._persist(rows)
        return LedgerChange(transactions=created, impacts=_merge_impacts([(origin.id, base_date)]))

    def _create_single(
        self,
        request: CreateTransactionRequest,
        origin: Account,
        base_date: date,
        common: dict[str, Any],
    ) -> LedgerChange:
        row = {
            **common,
            "account_id": origin.id,
            "amount": signed_amount(request.type, request.amount),
            "date": base_date,
            "type": request.type,
            "is_paid": request.is_paid,
        }
        if origin.is_credit:
            info = require_credit_card_info(origin)
            row["is_paid"] = False
            row["purchase_date"] = base_date
            row["invoice_month"] = request.invoice_month or compute_invoice_month(
                base_date, info.closing_day
            )

        with self.db.unit_of_work():
            created = self._persist([row])
        return LedgerChange(
            transactions=created,
            impacts=_merge_impacts([(origin.id, base_date)]),
            single=True,
        )

    def _create_installments(
        self,
        request: CreateTransactionRequest,
        origin: Account,
        base_date: date,
        common: dict[str, Any],
    ) -> LedgerChange:
        total = request.total_installments
        shares = split_exact(to_minor_units(abs(request.amount)), total)
        first_invoice = None
        if origin.is_credit:
            info = require_credit_card_info(origin)
            first_invoice = request.invoice_month or compute_invoice_month(
                base_date, info.closing_day
            )

        recurrence_id = str(uuid.uuid4())
        rows = []
        for i, cents in enumerate(shares, start=1):
            row = {
                **common,
                "account_id": origin.id,
                "amount": signed_amount(request.type, from_minor_units(cents)),
                "date": step_date(base_date, MONTHS, i - 1),
                "type": request.type,
                "is_paid": request.is_paid if i == 1 and not origin.is_credit else False,
                "recurrence_id": recurrence_id,
                "installment_number": i,
                "total_installments": total,
            }
            if origin.is_credit:
                row["purchase_date"] = base_date
                row["invoice_month"] = installment_invoice_month(first_invoice, i)
            rows.append(row)

        with self.db.unit_of_work():
            created = self._persist(rows)
        return LedgerChange(transactions=created, impacts=_merge_impacts([(origin.id, base_date)]))

    # Reads
    def get_transaction(self, actor_id: str, transaction_id: int) -> Transaction:
        """Get a transaction the actor may see.

        Raises:
            NotFoundError: If it doesn't exist or sits on an account the actor
                cannot read
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        account = self.db.get_account(txn.account_id)
        if account is None or not can_read(self.db, actor_id, account):
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def get_series(self, actor_id: str, transaction_id: int) -> Optional[SeriesGroup]:
        """The installment plan or recurring series a transaction belongs to, if any."""
        txn = self.get_transaction(actor_id, transaction_id)
        if txn.recurrence_id is None:
            return None
        return SeriesGroup.from_members(self.db.list_series(txn.recurrence_id))

    def list_transactions(self, actor_id: str, criteria: TransactionFilter) -> TransactionPage:
        """List a page of transactions on accounts visible to the actor.

        Ordered newest first. Pass ``next_cursor_id`` back as ``cursor_id`` to
        get the following page.

        Raises:
            ValidationError: If the page size or invoice month is invalid
            NotFoundError: If the filtered account doesn't exist
            ForbiddenError: If the actor may not read the filtered account
        """
        if not 1 <= criteria.limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        if criteria.invoice_month is not None:
            try:
                parse_invoice_month(criteria.invoice_month)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        if criteria.account_id is not None:
            require_readable_account(self.db, actor_id, criteria.account_id)

        visible = [account.id for account in self.db.list_accessible_accounts(actor_id)]
        items = self.db.list_transactions(criteria, visible_account_ids=visible)
        next_cursor = items[-1].id if len(items) == criteria.limit else None
        return TransactionPage(items=tuple(items), next_cursor_id=next_cursor)

    # Mutation
    def _load_for_write(self, actor_id: str, transaction_id: int) -> Transaction:
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        require_writable_account(self.db, actor_id, txn.account_id)
        return txn

    def _targets(self, actor_id: str, anchor: Transaction, scope: MutationScope) -> list[Transaction]:
        """Entries a mutation of ``anchor`` touches. Transfers always move both legs."""
        if anchor.transfer_id is not None:
            legs = self.db.list_transfer_legs(anchor.transfer_id)
            for leg in legs:
                if leg.account_id != anchor.account_id:
                    require_writable_account(self.db, actor_id, leg.account_id)
            return legs
        if anchor.in_series and scope != MutationScope.ONE:
            group = SeriesGroup.from_members(self.db.list_series(anchor.recurrence_id))
            return group.select(anchor, scope)
        return [anchor]

    @staticmethod
    def _series_bulk_bound(anchor: Transaction, scope: MutationScope) -> tuple[bool, Optional[int]]:
        """Whether a mutation can run on the whole series at once, and from which installment."""
        if anchor.transfer_id is not None or not anchor.in_series or scope == MutationScope.ONE:
            return False, None
        if scope == MutationScope.THIS_AND_FOLLOWING:
            return True, anchor.installment_number
        return True, None

    def update(
        self,
        actor_id: str,
        transaction_id: int,
        patch: TransactionPatch,
        scope: MutationScope = MutationScope.ONE,
    ) -> LedgerChange:
        """Update a transaction, and optionally the rest of its series.

        A new date shifts every touched entry by the same number of days.
        Invoice months never change.

        Args:
            actor_id: Acting user
            transaction_id: Transaction to update
            patch: Fields to change
            scope: ONE, THIS_AND_FOLLOWING or ALL (series only)

        Returns:
            LedgerChange with the updated entries and balance impacts

        Raises:
            NotFoundError: If the transaction or category doesn't exist
            ForbiddenError: If the actor may not write to the account or use the category
            ValidationError: If the patch is invalid
        """
        anchor = self._load_for_write(actor_id, transaction_id)

        if patch.clear_category and patch.category_id is not None:
            raise ValidationError("Cannot set both category_id and clear_category")
        if patch.description is not None and not patch.description.strip():
            raise ValidationError("Description cannot be blank")
        if patch.amount is not None and to_minor_units(patch.amount) <= 0:
            raise ValidationError("Amount must be greater than zero")
        require_category_access(self.db, actor_id, patch.category_id)

        if patch.is_empty:
            return LedgerChange(transactions=(anchor,), single=True)

        targets = self._targets(actor_id, anchor, scope)
        day_delta = (patch.date - anchor.date) if patch.date is not None else None
        credit_accounts = set()
        for account_id in {t.account_id for t in targets}:
            account = self.db.get_account(account_id)
            if account is not None and account.is_credit:
                credit_accounts.add(account_id)

        # Without a date shift every member gets the same column values.
        bulk, min_installment = self._series_bulk_bound(anchor, scope)
        bulk = bulk and day_delta is None

        affected: list[tuple[int, date]] = []
        with self.db.unit_of_work():
            if bulk:
                changes = self._patch_columns(patch, anchor, None, anchor.account_id in credit_accounts)
                self.db.update_transactions_by_recurrence(
                    anchor.recurrence_id, changes, min_installment=min_installment
                )
                if patch.affects_balance:
                    affected.extend((target.account_id, target.date) for target in targets)
            else:
                for target in targets:
                    changes = self._patch_columns(
                        patch, target, day_delta, target.account_id in credit_accounts
                    )
                    self.db.update_transaction(target.id, **changes)
                    if patch.affects_balance:
                        affected.append((target.account_id, target.date))
                        if "date" in changes:
                            affected.append((target.account_id, changes["date"]))

        updated = self.db.get_transactions([t.id for t in targets])
        updated.sort(key=lambda t: t.id != anchor.id)
        logger.info(
            "Updated %d entr%s from transaction %d (scope %s)",
            len(updated),
            "y" if len(updated) == 1 else "ies",
            transaction_id,
            scope.value,
        )
        return LedgerChange(
            transactions=tuple(updated),
            impacts=_merge_impacts(affected),
            single=len(updated) == 1,
        )

    @staticmethod
    def _patch_columns(
        patch: TransactionPatch,
        target: Transaction,
        day_delta: Optional[timedelta],
        is_credit: bool,
    ) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if patch.clear_category:
            changes["category_id"] = None
        elif patch.category_id is not None:
            changes["category_id"] = patch.category_id
        if patch.description is not None:
            changes["description"] = patch.description.strip()
        if patch.is_paid is not None:
            changes["is_paid"] = patch.is_paid
        if patch.amount is not None:
            changes["amount"] = signed_amount(target.type, patch.amount, outgoing=target.amount < 0)
        if day_delta is not None:
            new_date = target.date + day_delta
            changes["date"] = new_date
            if is_credit:
                changes["purchase_date"] = new_date
        return changes

    def delete(
        self,
        actor_id: str,
        transaction_id: int,
        scope: MutationScope = MutationScope.ONE,
    ) -> LedgerChange:
        """Delete a transaction, and optionally the rest of its series.

        Deleting either leg of a transfer deletes both.

        Returns:
            LedgerChange with ``deleted_ids`` and balance impacts

        Raises:
            NotFoundError: If the transaction doesn't exist
            ForbiddenError: If the actor may not write to the account
        """
        anchor = self._load_for_write(actor_id, transaction_id)
        targets = self._targets(actor_id, anchor, scope)
        ids = [t.id for t in targets]

        bulk, min_installment = self._series_bulk_bound(anchor, scope)
        with self.db.unit_of_work():
            if bulk:
                self.db.delete_transactions_by_recurrence(
                    anchor.recurrence_id, min_installment=min_installment
                )
            else:
                self.db.delete_transactions(ids)

        logger.info(
            "Deleted %d entr%s from transaction %d (scope %s)",
            len(ids),
            "y" if len(ids) == 1 else "ies",
            transaction_id,
            scope.value,
        )
        return LedgerChange(
            impacts=_merge_impacts((t.account_id, t.date) for t in targets),
            deleted_ids=tuple(ids),
        )

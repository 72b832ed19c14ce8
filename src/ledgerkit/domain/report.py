"""Reporting service: balance history, cash flow and spending by category."""

import csv
import io
import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from ledgerkit.database.base import Database
from ledgerkit.domain.access import require_readable_account
from ledgerkit.domain.entities import (
    BalancePoint,
    CashFlowRow,
    CategorySpending,
    Granularity,
    Transaction,
    TransactionType,
)
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.snapshot import SnapshotService
from ledgerkit.utils.date_math import invoice_month_label, month_bounds, parse_invoice_month

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_DAYS = 90
UNCATEGORIZED = "Uncategorized"
CSV_HEADERS = ["Date", "Description", "Category", "Account", "Type", "Amount", "Paid"]
ZERO = Decimal("0.00")


def infer_granularity(start: date, end: date) -> Granularity:
    """Pick a sampling step for a window: daily up to ~3 months, weekly up to a year."""
    total_days = (end - start).days + 1
    if total_days <= 92:
        return Granularity.DAY
    if total_days <= 366:
        return Granularity.WEEK
    return Granularity.MONTH


def end_of_week(value: date) -> date:
    """The Sunday closing the week of ``value``."""
    return value + timedelta(days=6 - value.weekday())


def end_of_month(value: date) -> date:
    return value.replace(day=1) + relativedelta(months=1) - timedelta(days=1)


def list_period_end_dates(start: date, end: date, granularity: Granularity) -> list[date]:
    """Last day of every week or month touching [start, end], clipped to end."""
    step = end_of_week if granularity == Granularity.WEEK else end_of_month
    dates = []
    cursor = start
    while cursor <= end:
        period_end = min(step(cursor), end)
        dates.append(period_end)
        cursor = period_end + timedelta(days=1)
    return dates


class ReportService:
    """Service building reports over the accounts visible to a user."""

    def __init__(self, db: Database, snapshots: Optional[SnapshotService] = None):
        """Initialize report service.

        Args:
            db: Database instance
            snapshots: Snapshot service used to warm up history windows
        """
        self.db = db
        self.snapshots = snapshots or SnapshotService(db)

    def _scoped_account_ids(self, actor_id: str, account_ids: Optional[Iterable[int]]) -> list[int]:
        if account_ids:
            return [require_readable_account(self.db, actor_id, aid).id for aid in account_ids]
        return [account.id for account in self.db.list_accessible_accounts(actor_id)]

    def balance_history(
        self,
        actor_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_ids: Optional[Iterable[int]] = None,
        granularity: Optional[Granularity] = None,
        change_only: bool = False,
    ) -> list[BalancePoint]:
        """Total balance of the scoped accounts over time, read from daily snapshots.

        Args:
            actor_id: Acting user
            start: First day (defaults to 90 days before end)
            end: Last day (defaults to today)
            account_ids: Accounts to include (defaults to every visible account)
            granularity: DAY, WEEK or MONTH (inferred from the window length)
            change_only: Keep only the first point, points that changed and the last point

        Returns:
            Balance points in date order

        Raises:
            ValidationError: If start is after end
            ForbiddenError: If a requested account is not visible to the actor
        """
        end = end or date.today()
        start = start or end - timedelta(days=DEFAULT_HISTORY_DAYS)
        if start > end:
            raise ValidationError("Start date must be on or before end date")

        granularity = granularity or infer_granularity(start, end)
        ids = self._scoped_account_ids(actor_id, account_ids)
        if not ids:
            return []

        for account_id in ids:
            self.snapshots.ensure_snapshots(account_id, start, end)

        periods: dict[date, date] = {}
        if granularity == Granularity.DAY:
            totals = self.db.sum_snapshots_by_date(ids, start_date=start, end_date=end)
        else:
            period_start = start
            for period_end in list_period_end_dates(start, end, granularity):
                periods[period_end] = period_start
                period_start = period_end + timedelta(days=1)
            totals = self.db.sum_snapshots_by_date(ids, dates=list(periods))

        points: list[BalancePoint] = []
        previous: Optional[Decimal] = None
        for day, balance in totals:
            delta = None if previous is None else balance - previous
            points.append(
                BalancePoint(
                    date=day,
                    label=invoice_month_label(day) if granularity == Granularity.MONTH else day.isoformat(),
                    period_start=periods.get(day, day),
                    period_end=day,
                    balance=balance,
                    delta=delta,
                    changed=delta is None or delta != 0,
                )
            )
            previous = balance

        logger.debug(
            "Balance history for %d accounts: %d %s points", len(ids), len(points), granularity.value
        )
        if not change_only or len(points) <= 1:
            return points

        kept = [point for index, point in enumerate(points) if index == 0 or point.changed]
        if kept[-1] is not points[-1]:
            kept.append(points[-1])
        return kept

    def _report_transactions(
        self,
        actor_id: str,
        start: Optional[date],
        end: Optional[date],
        account_ids: Optional[Iterable[int]],
        invoice_month: Optional[str],
        include_pending: bool,
        types: list[TransactionType],
    ) -> list[Transaction]:
        ids = self._scoped_account_ids(actor_id, account_ids)
        if not ids:
            return []

        if invoice_month is not None:
            try:
                month_start, month_end = month_bounds(invoice_month)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            candidates = self.db.list_account_transactions(ids, types=types)
            transactions = [
                txn
                for txn in candidates
                if txn.invoice_month == invoice_month
                or (txn.invoice_month is None and month_start <= txn.date <= month_end)
            ]
        else:
            if start is not None and end is not None and start > end:
                raise ValidationError("Start date must be on or before end date")
            transactions = self.db.list_account_transactions(ids, start, end, types)

        if not include_pending:
            transactions = [txn for txn in transactions if txn.is_paid]
        return transactions

    def cash_flow(
        self,
        actor_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_ids: Optional[Iterable[int]] = None,
        invoice_month: Optional[str] = None,
        include_pending: bool = False,
    ) -> list[CashFlowRow]:
        """Income and expense totals per month.

        Card entries are counted in their invoice month, everything else in the
        month of its date. Transfers are not income or expense and are left out.
        """
        transactions = self._report_transactions(
            actor_id,
            start,
            end,
            account_ids,
            invoice_month,
            include_pending,
            [TransactionType.INCOME, TransactionType.EXPENSE],
        )

        income: dict[str, Decimal] = defaultdict(lambda: ZERO)
        expense: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for txn in transactions:
            period = txn.invoice_month or invoice_month_label(txn.date)
            if txn.type == TransactionType.INCOME:
                income[period] += abs(txn.amount)
            else:
                expense[period] += abs(txn.amount)

        periods = sorted(set(income) | set(expense), key=parse_invoice_month)
        return [CashFlowRow(period=p, income=income[p], expense=expense[p]) for p in periods]

    def spending_by_category(
        self,
        actor_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_ids: Optional[Iterable[int]] = None,
        invoice_month: Optional[str] = None,
        include_pending: bool = False,
    ) -> list[CategorySpending]:
        """Expense totals per category, largest first, with their share of the total."""
        transactions = self._report_transactions(
            actor_id,
            start,
            end,
            account_ids,
            invoice_month,
            include_pending,
            [TransactionType.EXPENSE],
        )

        totals: dict[Optional[int], Decimal] = defaultdict(lambda: ZERO)
        for txn in transactions:
            totals[txn.category_id] += abs(txn.amount)
        grand_total = sum(totals.values(), ZERO)

        rows = []
        for category_id, amount in totals.items():
            category = self.db.get_category(category_id) if category_id is not None else None
            percentage = (amount * 100 / grand_total).quantize(Decimal("0.01")) if grand_total else ZERO
            rows.append(
                CategorySpending(
                    category_id=category_id,
                    category_name=category.name if category else UNCATEGORIZED,
                    amount=amount,
                    percentage=percentage,
                )
            )
        return sorted(rows, key=lambda row: row.amount, reverse=True)

    def export_transactions_csv(
        self,
        actor_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_ids: Optional[Iterable[int]] = None,
        invoice_month: Optional[str] = None,
        include_pending: bool = False,
    ) -> str:
        """Export the entries matched by the report filters as CSV text.

        Rows are ordered newest first and carry the signed amount of each entry.
        Transfers are exported too, one row per leg.

        Args:
            actor_id: Acting user
            start: First day of the window
            end: Last day of the window
            account_ids: Accounts to include (defaults to every visible account)
            invoice_month: Only entries of this invoice month (YYYY-MM)
            include_pending: Also export entries that are not paid yet

        Returns:
            CSV text with a header row

        Raises:
            ValidationError: If the window or invoice month is invalid
            ForbiddenError: If a requested account is not visible to the actor
        """
        transactions = self._report_transactions(
            actor_id,
            start,
            end,
            account_ids,
            invoice_month,
            include_pending,
            list(TransactionType),
        )
        transactions.sort(key=lambda txn: (txn.date, txn.id), reverse=True)

        account_names: dict[int, str] = {}
        category_names: dict[int, str] = {}

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for txn in transactions:
            if txn.account_id not in account_names:
                account_names[txn.account_id] = self.db.get_account(txn.account_id).name
            category_name = UNCATEGORIZED
            if txn.category_id is not None:
                if txn.category_id not in category_names:
                    category_names[txn.category_id] = self.db.get_category(txn.category_id).name
                category_name = category_names[txn.category_id]
            writer.writerow(
                [
                    txn.date.isoformat(),
                    txn.description or "",
                    category_name,
                    account_names[txn.account_id],
                    txn.type.value,
                    f"{txn.amount:.2f}",
                    "yes" if txn.is_paid else "no",
                ]
            )

        logger.info("Exported %d transactions to CSV", len(transactions))
        return output.getvalue()

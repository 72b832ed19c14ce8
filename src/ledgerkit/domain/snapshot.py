"""Daily balance snapshot service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.balance import balance_effect, opening_balance
from ledgerkit.domain.entities import BalanceImpact, DailySnapshot
from ledgerkit.utils.date_math import iter_days

logger = logging.getLogger(__name__)

# Bump when the folding rules change; older rows are then rebuilt on read.
CALC_VERSION = 2


class SnapshotService:
    """Service maintaining one end-of-day balance row per account and day."""

    def __init__(self, db: Database):
        """Initialize snapshot service.

        Args:
            db: Database instance
        """
        self.db = db

    def recompute(self, account_id: int, from_date: date, to_date: Optional[date] = None) -> int:
        """Rewrite the snapshots of an account for every day in [from_date, to_date].

        All paid entries are folded in date order; days without entries carry
        the previous balance forward. Only days inside the window are written.

        Args:
            account_id: Account ID (unknown accounts are ignored)
            from_date: First day to write
            to_date: Last day to write (defaults to today)

        Returns:
            Number of snapshot rows written
        """
        if to_date is None:
            to_date = date.today()
        if from_date > to_date:
            return 0

        account = self.db.get_account(account_id)
        if account is None:
            logger.debug("Skipping snapshot recompute for missing account %d", account_id)
            return 0

        opening = opening_balance(account)
        entries = self.db.list_paid_transactions(account_id)

        if not entries:
            rows = [(day, opening) for day in iter_days(from_date, to_date)]
        else:
            closing: dict[date, Decimal] = {}
            running = opening
            for entry in entries:
                running += balance_effect(account.type, entry.type, entry.amount)
                closing[entry.date] = running

            rows = []
            running = opening
            for day in iter_days(min(entries[0].date, from_date), to_date):
                running = closing.get(day, running)
                if day >= from_date:
                    rows.append((day, running))

        with self.db.unit_of_work():
            written = self.db.upsert_snapshots(account_id, rows, CALC_VERSION)

        logger.debug(
            "Recomputed %d snapshots for account %d from %s to %s",
            written,
            account_id,
            from_date,
            to_date,
        )
        return written

    def apply(self, impacts: Iterable[BalanceImpact]) -> int:
        """Recompute snapshots for a batch of balance impacts.

        Impacts on the same account are merged to the earliest date.

        Returns:
            Total number of snapshot rows written
        """
        earliest: dict[int, date] = {}
        for impact in impacts:
            current = earliest.get(impact.account_id)
            if current is None or impact.since < current:
                earliest[impact.account_id] = impact.since

        return sum(self.recompute(account_id, since) for account_id, since in earliest.items())

    def ensure_snapshots(self, account_id: int, start_date: date, end_date: date) -> bool:
        """Make sure every day of a window has a current snapshot.

        Recomputes the window when a day is missing or a row was written by
        another calc version.

        Returns:
            True if the window had to be recomputed
        """
        if start_date > end_date:
            return False
        expected = (end_date - start_date).days + 1
        count = self.db.count_snapshots(account_id, start_date, end_date)
        stale = self.db.has_stale_snapshots(account_id, start_date, end_date, CALC_VERSION)
        if count >= expected and not stale:
            return False

        logger.info(
            "Warming up snapshots for account %d (%d of %d present, stale=%s)",
            account_id,
            count,
            expected,
            stale,
        )
        self.recompute(account_id, start_date, end_date)
        return True

    def rebuild(self, account_id: int, to_date: Optional[date] = None) -> int:
        """Recompute an account's snapshots from its first paid entry (or creation)."""
        account = self.db.get_account(account_id)
        if account is None:
            return 0
        entries = self.db.list_paid_transactions(account_id)
        since = entries[0].date if entries else account.created_at.date()
        return self.recompute(account_id, since, to_date)

    def get_snapshot(self, account_id: int, day: date) -> Optional[DailySnapshot]:
        """Get the stored snapshot of one account on one day."""
        return self.db.get_snapshot(account_id, day)

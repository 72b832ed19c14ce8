"""Credit card invoice assignment."""

import logging

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account, CreditCardInfo, Transaction
from ledgerkit.domain.errors import InternalError, missing_credit_card_info
from ledgerkit.utils.date_math import compute_invoice_month, shift_invoice_month

logger = logging.getLogger(__name__)

__all__ = [
    "compute_invoice_month",
    "installment_invoice_month",
    "require_credit_card_info",
    "settle_invoice",
]


def installment_invoice_month(first_invoice_month: str, installment_number: int) -> str:
    """Invoice month of installment ``installment_number`` (1-based) of a card purchase."""
    return shift_invoice_month(first_invoice_month, installment_number - 1)


def require_credit_card_info(account: Account) -> CreditCardInfo:
    """Return the card data of a CREDIT account.

    Raises:
        InternalError: If the account was stored without card data
    """
    if account.credit_card_info is None:
        raise InternalError(missing_credit_card_info(account.id))
    return account.credit_card_info


def settle_invoice(db: Database, account: Account, invoice_month: str) -> list[Transaction]:
    """Mark every pending expense of one invoice as paid.

    Args:
        db: Database instance
        account: The credit account receiving the payment
        invoice_month: Invoice being paid, as ``YYYY-MM``

    Returns:
        The entries that were settled
    """
    settled = db.mark_invoice_paid(account.id, invoice_month)
    if settled:
        logger.info(
            "Settled %d pending entries of invoice %s on account %d",
            len(settled),
            invoice_month,
            account.id,
        )
    return settled

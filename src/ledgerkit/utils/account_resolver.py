"""Utility for resolving account names to IDs."""

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import NotFoundError, account_not_found


def resolve_account(account_service: AccountService, actor_id: str, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Only accounts the actor owns or has been shared are considered.

    Args:
        account_service: AccountService instance
        actor_id: Acting user
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    accounts = account_service.list_accounts(actor_id)

    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        if any(acc.id == account_id for acc in accounts):
            return account_id
        raise NotFoundError(account_not_found(account_id))

    for acc in accounts:
        if acc.name == account:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")

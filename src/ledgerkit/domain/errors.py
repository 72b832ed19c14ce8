"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ForbiddenError(DomainError):
    """Actor is not allowed to perform the operation.

    Also used for operations the account kind does not permit, such as a
    recurring series on a credit card.
    """


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class InternalError(DomainError):
    """A stored invariant is broken. Always a bug, never bad user input."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def account_write_denied(account_id: int) -> str:
    """Return message when the actor may not post to an account."""
    return f"No permission to record transactions on account {account_id}"


def account_read_denied(account_id: int) -> str:
    """Return message when the actor may not see an account."""
    return f"No permission to access account {account_id}"


def category_access_denied(category_id: int) -> str:
    """Return message when the actor may not use a category."""
    return f"No permission to use category {category_id}"


def missing_credit_card_info(account_id: int) -> str:
    """Return message for a credit account stored without card data."""
    return f"Credit account {account_id} has no credit card info"


def duplicate_account_name(name: str) -> str:
    """Return message for a duplicate account name."""
    return f"Account with name '{name}' already exists"


def account_delete_blocked(account_id: int, transaction_count: int) -> str:
    """Return message when account has dependent transactions."""
    return (
        f"Cannot delete account {account_id}: it has {transaction_count} "
        f"transaction{'s' if transaction_count != 1 else ''}. "
        "Please delete them first."
    )

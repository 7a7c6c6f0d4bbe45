"""Utility for resolving account names to IDs."""

from ledgerbook.domain.account import AccountService
from ledgerbook.domain.errors import AccountNotFound, NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account display name or ID to account ID.

    A value that parses as an integer is treated as an ID first; if no account
    has that ID, it is tried as a display name.

    Raises:
        NotFoundError: If account is not found
    """
    if isinstance(account, int):
        if account_service.get_account(account) is None:
            raise AccountNotFound(account)
        return account

    text = account.strip()
    if text.isdigit():
        account_id = int(text)
        if account_service.get_account(account_id) is not None:
            return account_id

    for acc in account_service.list_accounts(search=text):
        if acc.display_name == text:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")

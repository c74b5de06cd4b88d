"""Principal handling shared by every privileged operation."""

from __future__ import annotations

from typing import Optional

from .errors import Unauthorized


def normalize_account(account: str) -> str:
    """Normalize an account address by trimming surrounding whitespace.

    Case is preserved: addresses such as base58 strings are case-sensitive and
    are handed to the token ledger exactly as stored.

    Parameters
    ----------
    account : str
        Raw account address or principal identifier.
    """

    if account is None:
        raise ValueError("account must not be None")
    if not isinstance(account, str):
        raise TypeError("account must be a string")
    normalized = account.strip()
    if not normalized:
        raise ValueError("account must not be empty")
    return normalized


def require_principal(caller: str, expected: Optional[str], action: str) -> None:
    """Raise :class:`Unauthorized` unless ``caller`` is the ``expected`` principal.

    A missing ``expected`` principal never matches; callers that treat an
    unset role as "open to anyone" must check that case themselves.
    """

    if expected is None or normalize_account(caller) != normalize_account(expected):
        raise Unauthorized(f"{caller!r} is not allowed to {action}")


__all__ = ["normalize_account", "require_principal"]

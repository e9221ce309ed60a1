"""
Access Policy.

The single place that knows about the bootstrap super-admin account.
Guards and the sign-in controller receive an ``AccessPolicy`` instead of
comparing email addresses themselves.
"""

from __future__ import annotations

from typing import Callable, Final, Optional

BOOTSTRAP_ADMIN_EMAIL: Final[str] = "afifetownweb@gmail.com"


def is_bootstrap_account(email: Optional[str]) -> bool:
    """``True`` for the fixed super-admin bootstrap address (case-insensitive)."""
    if not email:
        return False
    return email.strip().lower() == BOOTSTRAP_ADMIN_EMAIL


class AccessPolicy:
    """Injectable wrapper around the bootstrap-account predicate.

    The bootstrap account is exempt from the native OTP-flag check and
    from native/admin role exclusivity.

    Parameters
    ----------
    bootstrap_predicate:
        Replaces :func:`is_bootstrap_account`, e.g. in tests.
    """

    def __init__(
        self,
        bootstrap_predicate: Callable[[Optional[str]], bool] = is_bootstrap_account,
    ) -> None:
        self._is_bootstrap = bootstrap_predicate

    def is_bootstrap_account(self, email: Optional[str]) -> bool:
        return self._is_bootstrap(email)

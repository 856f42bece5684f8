"""
Connected booking-site accounts.

Confirmed bookings are placed through one of the user's connected
accounts. Which account gets used is a policy of the pool; the core only
needs one whenever it books.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Protocol

from autobook.errors import NoUsableAccount
from autobook.models import ConnectedAccount

logger = logging.getLogger(__name__)


class AccountPool(Protocol):
    def pick_account(self) -> str:
        """Return an account id, raising NoUsableAccount if none is usable."""
        ...


class ConnectedAccountPool:
    """Round-robin over the accounts whose status is ``active``."""

    def __init__(self, accounts: list[ConnectedAccount] | None = None) -> None:
        self._accounts: dict[str, ConnectedAccount] = {}
        self._counter = itertools.count()
        self._lock = threading.Lock()
        for account in accounts or []:
            self.add(account)

    def add(self, account: ConnectedAccount) -> None:
        with self._lock:
            self._accounts[account.id] = account
        logger.info("Connected account %s (%s)", account.id, account.status)

    def remove(self, account_id: str) -> bool:
        with self._lock:
            return self._accounts.pop(account_id, None) is not None

    def accounts(self) -> list[ConnectedAccount]:
        with self._lock:
            return list(self._accounts.values())

    def usable(self) -> list[ConnectedAccount]:
        with self._lock:
            return [a for a in self._accounts.values() if a.status == "active"]

    def pick_account(self) -> str:
        usable = self.usable()
        if not usable:
            raise NoUsableAccount()
        return usable[next(self._counter) % len(usable)].id

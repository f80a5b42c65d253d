"""Ledger store: per-account postings and running balances."""

import logging
from typing import Iterable, Optional

from taxledger.domain.chart import ChartOfAccountsRegistry
from taxledger.domain.entities import (
    ZERO,
    JournalEntry,
    LedgerAccount,
    LedgerPosting,
    NormalBalance,
)

logger = logging.getLogger(__name__)


class LedgerStore:
    """Applies journal entries to per-account ledgers.

    Balances are signed on each account's normal side: a debit-normal account
    moves by ``debit - credit`` and a credit-normal account by
    ``credit - debit``. Entries are applied at most once, keyed by entry id.
    """

    def __init__(self, registry: ChartOfAccountsRegistry):
        self.registry = registry
        self._accounts: dict[str, LedgerAccount] = {}
        self._applied: set[str] = set()

    def apply(self, entry: JournalEntry) -> bool:
        """Post a journal entry to the ledger.

        Every line's account is resolved before anything changes, so an
        entry referencing an unknown account leaves the ledger untouched.

        Args:
            entry: Journal entry to post

        Returns:
            True if applied, False if the entry id had already been applied

        Raises:
            UnknownAccountError: If a line references an account not in the chart
        """
        if entry.id in self._applied:
            logger.debug("Entry %s already applied; skipping", entry.id)
            return False

        accounts = [self.registry.resolve(line.account_code) for line in entry.lines]

        for account, line in zip(accounts, entry.lines):
            ledger = self._accounts.get(account.code)
            if ledger is None:
                ledger = LedgerAccount(
                    account_code=account.code,
                    account_name=account.name,
                    account_class=account.account_class,
                    normal_balance=account.normal_balance,
                )
            if ledger.normal_balance == NormalBalance.DEBIT:
                delta = line.debit - line.credit
            else:
                delta = line.credit - line.debit
            balance = ledger.closing_balance + delta
            posting = LedgerPosting(
                date=entry.date,
                entry_id=entry.id,
                narration=entry.narration,
                debit=line.debit,
                credit=line.credit,
                balance=balance,
            )
            self._accounts[account.code] = LedgerAccount(
                account_code=ledger.account_code,
                account_name=ledger.account_name,
                account_class=ledger.account_class,
                normal_balance=ledger.normal_balance,
                entries=ledger.entries + (posting,),
                closing_balance=balance,
            )

        self._applied.add(entry.id)
        return True

    def rebuild_from_entries(self, entries: Iterable[JournalEntry]) -> None:
        """Reset the ledger and apply entries in the given order."""
        self.reset()
        for entry in entries:
            self.apply(entry)

    def reset(self) -> None:
        self._accounts = {}
        self._applied = set()

    def is_applied(self, entry_id: str) -> bool:
        return entry_id in self._applied

    def get_account(self, code: str) -> Optional[LedgerAccount]:
        """Ledger for an account, or None if nothing has been posted to it."""
        return self._accounts.get(code)

    def balance(self, code: str):
        ledger = self._accounts.get(code)
        return ledger.closing_balance if ledger is not None else ZERO

    def accounts(self) -> dict[str, LedgerAccount]:
        """Ledgers keyed by account code, in code order."""
        return {code: self._accounts[code] for code in sorted(self._accounts)}

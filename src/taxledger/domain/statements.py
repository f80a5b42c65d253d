"""Trial balance and financial statement assembly."""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from taxledger.domain.chart import ChartOfAccountsRegistry
from taxledger.domain.entities import (
    BALANCE_TOLERANCE,
    ZERO,
    AccountClass,
    EntrySource,
    JournalEntry,
    LedgerAccount,
    NormalBalance,
    StatementDraft,
    TrialBalance,
    TrialBalanceRow,
)

logger = logging.getLogger(__name__)

COST_OF_SALES_PREFIX = "50"


class StatementService:
    """Builds the trial balance and yearly statements."""

    def __init__(self, registry: ChartOfAccountsRegistry):
        """Initialize statement service.

        Args:
            registry: Chart of accounts used to classify posted lines
        """
        self.registry = registry

    def generate_trial_balance(self, ledger_accounts: Iterable[LedgerAccount]) -> TrialBalance:
        """Build a trial balance from ledger closing balances.

        A positive balance is shown on the account's normal side and a
        negative one on the opposite side. Zero balances are omitted. An
        imbalance is reported through ``is_balanced`` and a logged warning.

        Args:
            ledger_accounts: Ledger accounts to include

        Returns:
            Trial balance sorted by account code
        """
        rows = []
        total_debit = ZERO
        total_credit = ZERO
        for ledger in sorted(ledger_accounts, key=lambda account: account.account_code):
            balance = ledger.closing_balance
            if balance == 0:
                continue
            debit_side = (ledger.normal_balance == NormalBalance.DEBIT) == (balance > 0)
            debit = abs(balance) if debit_side else ZERO
            credit = ZERO if debit_side else abs(balance)
            rows.append(
                TrialBalanceRow(
                    account_code=ledger.account_code,
                    account_name=ledger.account_name,
                    debit=debit,
                    credit=credit,
                )
            )
            total_debit += debit
            total_credit += credit

        is_balanced = abs(total_debit - total_credit) <= BALANCE_TOLERANCE
        if not is_balanced:
            logger.warning(
                "Trial balance does not balance: debits %s, credits %s",
                total_debit,
                total_credit,
            )
        return TrialBalance(
            accounts=tuple(rows),
            total_debit=total_debit,
            total_credit=total_credit,
            is_balanced=is_balanced,
        )

    def generate_statements(self, year: int, entries: Iterable[JournalEntry]) -> StatementDraft:
        """Build the income statement and balance sheet for a calendar year.

        Income statement figures cover entries dated in ``year`` and ignore
        closing entries. Balance sheet figures accumulate every entry dated
        on or before 31 December of ``year``.

        Args:
            year: Calendar year
            entries: All journal entries

        Returns:
            Statement draft
        """
        year_end = date(year, 12, 31)
        revenue = ZERO
        cost_of_sales = ZERO
        operating_expenses = ZERO
        assets = ZERO
        liabilities = ZERO
        equity = ZERO
        current_earnings = ZERO

        for entry in entries:
            if entry.date > year_end:
                continue
            in_period = entry.date.year == year and entry.source != EntrySource.CLOSING
            for line in entry.lines:
                account = self.registry.find(line.account_code)
                if account is None:
                    logger.warning(
                        "Entry %s references unknown account %s", entry.id, line.account_code
                    )
                    continue
                net_debit = line.debit - line.credit
                account_class = account.account_class
                if account_class == AccountClass.ASSET:
                    assets += net_debit
                elif account_class == AccountClass.LIABILITY:
                    liabilities -= net_debit
                elif account_class == AccountClass.EQUITY:
                    equity -= net_debit
                else:
                    current_earnings -= net_debit
                    if not in_period:
                        continue
                    if account_class == AccountClass.REVENUE:
                        revenue -= net_debit
                    elif account.code.startswith(COST_OF_SALES_PREFIX):
                        cost_of_sales += net_debit
                    else:
                        operating_expenses += net_debit

        gross_profit = revenue - cost_of_sales
        return StatementDraft(
            year=year,
            revenue=revenue,
            cost_of_sales=cost_of_sales,
            gross_profit=gross_profit,
            operating_expenses=operating_expenses,
            net_income=gross_profit - operating_expenses,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            current_earnings=current_earnings,
        )

    def closing_balances(self, year: int, entries: Iterable[JournalEntry]) -> dict[str, Decimal]:
        """Unclosed revenue and expense balances at the end of a year.

        Balances are signed on each account's normal side, ready for
        building a closing entry.
        """
        year_end = date(year, 12, 31)
        balances: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for entry in entries:
            if entry.date > year_end:
                continue
            for line in entry.lines:
                account = self.registry.find(line.account_code)
                if account is None or account.account_class not in (
                    AccountClass.REVENUE,
                    AccountClass.EXPENSE,
                ):
                    continue
                if account.normal_balance == NormalBalance.DEBIT:
                    balances[account.code] += line.debit - line.credit
                else:
                    balances[account.code] += line.credit - line.debit
        return {code: balance for code, balance in balances.items() if balance != 0}

    @staticmethod
    def period_activity(year: int, code: str, entries: Iterable[JournalEntry]) -> Decimal:
        """Net debit on one account from a year's entries, ignoring closing entries."""
        total = ZERO
        for entry in entries:
            if entry.date.year != year or entry.source == EntrySource.CLOSING:
                continue
            for line in entry.lines:
                if line.account_code == code:
                    total += line.debit - line.credit
        return total

    @staticmethod
    def available_years(entries: Iterable[JournalEntry]) -> list[int]:
        """Years that have at least one journal entry, newest first."""
        return sorted({entry.date.year for entry in entries}, reverse=True)

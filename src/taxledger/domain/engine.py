"""Accounting engine: state, transitions and subscriptions.

The engine owns the chart of accounts, the journal, the ledger and the tax
computations. Every state transition validates first and then commits in a
single step, so a rejected operation never leaves partial changes behind.
Observers are notified synchronously after each successful transition and,
when a snapshot store is attached, the new state is saved on a best-effort
basis.
"""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Callable, Iterable, Optional

from taxledger.database.base import SnapshotStore
from taxledger.database.mappers import blob_to_snapshot, state_to_blob
from taxledger.domain.chart import ChartOfAccountsRegistry
from taxledger.domain.classifier import TransactionClassifier
from taxledger.domain.entities import (
    ChartAccount,
    Classification,
    EngineState,
    EntrySource,
    ImportResult,
    IncomeTaxAssessment,
    JournalEntry,
    LedgerAccount,
    ProcessedTransaction,
    RawTransaction,
    StatementDraft,
    TaxProfile,
    TaxScheduleEntry,
    TaxSummary,
    TrialBalance,
)
from taxledger.domain.errors import (
    ConflictError,
    DomainError,
    DuplicateTransactionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    duplicate_transaction,
)
from taxledger.domain.ledger import LedgerStore
from taxledger.domain.posting import SALARIES, DoubleEntryPoster
from taxledger.domain.statements import StatementService
from taxledger.domain.tax import TaxComputationEngine

logger = logging.getLogger(__name__)

Observer = Callable[[EngineState], None]


class AccountingEngine:
    """Single-writer accounting and tax engine."""

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        profile: Optional[TaxProfile] = None,
        classifier: Optional[TransactionClassifier] = None,
        autosave: bool = True,
    ):
        """Initialize the engine with empty books.

        Args:
            store: Snapshot store used by save() and load()
            profile: Taxpayer settings
            classifier: Classifier to use instead of the default rule table
            autosave: Save to the store after every successful transition
        """
        self.store = store
        self.profile = profile or TaxProfile()
        self.classifier = classifier or TransactionClassifier()
        self.autosave = autosave
        self.last_persistence_error: Optional[str] = None
        self._observers: list[Observer] = []
        self._reset_books()

    def _reset_books(self, custom_accounts: Iterable[ChartAccount] = ()) -> None:
        self.registry = ChartOfAccountsRegistry(custom_accounts)
        self.poster = DoubleEntryPoster(self.registry, self.profile)
        self.ledger = LedgerStore(self.registry)
        self.tax = TaxComputationEngine(self.profile)
        self.statements = StatementService(self.registry)
        self._transactions: dict[str, RawTransaction] = {}
        self._classifications: dict[str, Classification] = {}
        self._entries: list[JournalEntry] = []
        self._remitted: set[str] = set()
        self._last_updated: Optional[datetime] = None

    # Transitions

    def _apply_transaction(self, transaction: RawTransaction) -> ProcessedTransaction:
        if transaction.id in self._transactions:
            raise DuplicateTransactionError(duplicate_transaction(transaction.id))
        self.poster.validate(transaction)
        classification = self.classifier.classify(
            transaction.description, transaction.amount, transaction.category, transaction.type
        )
        # Build everything first; nothing below the apply may raise
        entry = self.poster.post(transaction, classification)
        tax_result = self.tax.evaluate(transaction, classification)

        self.ledger.apply(entry)
        self.tax.record(tax_result)
        self._transactions[transaction.id] = transaction
        self._classifications[transaction.id] = classification
        self._entries.append(entry)
        return ProcessedTransaction(
            transaction=transaction,
            classification=classification,
            journal_entry=entry,
            tax_result=tax_result,
        )

    def process_transaction(self, transaction: RawTransaction) -> ProcessedTransaction:
        """Classify, post and tax a single transaction.

        Args:
            transaction: Raw transaction

        Returns:
            Classification, journal entry and tax result for the transaction

        Raises:
            DuplicateTransactionError: If the transaction id was already processed
            InvalidAmountError: If amount is zero or negative
            MissingNarrationError: If the description is empty
        """
        processed = self._apply_transaction(transaction)
        logger.info(
            "Processed %s as %s (%s confidence)",
            transaction.id,
            processed.classification.transaction_type.value,
            processed.classification.confidence.value,
        )
        self._commit()
        return processed

    def import_transactions(self, transactions: Iterable[RawTransaction]) -> ImportResult:
        """Process many transactions, each applied or rejected on its own.

        Already-processed ids are skipped; invalid transactions are reported
        and do not affect the ones already applied.

        Args:
            transactions: Raw transactions, e.g. from a file extractor

        Returns:
            Counts of imported and skipped transactions plus error messages
        """
        imported = 0
        skipped = 0
        errors = []
        try:
            for transaction in transactions:
                try:
                    self._apply_transaction(transaction)
                    imported += 1
                except DuplicateTransactionError:
                    skipped += 1
                except (ValueError, TypeError, ArithmeticError) as e:
                    errors.append(f"{transaction.id}: {e}")
                    logger.warning("Rejected transaction %s: %s", transaction.id, e)
        finally:
            # Rows applied before an unexpected error are kept, so publish them
            if imported:
                self._commit()
        logger.info("Imported %d transactions, skipped %d, %d errors", imported, skipped, len(errors))
        return ImportResult(imported=imported, skipped=skipped, errors=tuple(errors))

    def add_custom_account(
        self,
        code: str,
        name: str,
        account_class: str,
        sub_class: str,
        description: str = "",
        normal_balance: Optional[str] = None,
    ) -> ChartAccount:
        """Add a custom account to the chart. See ChartOfAccountsRegistry."""
        account = self.registry.add_custom_account(
            code, name, account_class, sub_class, description, normal_balance
        )
        self._commit()
        return account

    def _record_entry(self, entry: JournalEntry) -> JournalEntry:
        self.ledger.apply(entry)
        self._entries.append(entry)
        self._commit()
        return entry

    def post_manual_entry(
        self,
        entry_date: date,
        narration: str,
        lines: Iterable[tuple],
        reference: Optional[str] = None,
    ) -> JournalEntry:
        """Post a balanced adjustment entry supplied by the user."""
        return self._record_entry(self.poster.post_manual(entry_date, narration, lines, reference))

    def record_depreciation(
        self, entry_date: date, asset_code: str, amount: Decimal, narration: Optional[str] = None
    ) -> JournalEntry:
        """Charge depreciation against a fixed asset."""
        return self._record_entry(
            self.poster.depreciation_entry(entry_date, asset_code, amount, narration)
        )

    def close_year(self, year: int) -> JournalEntry:
        """Close revenue and expense accounts into retained earnings.

        Raises:
            ConflictError: If the year has already been closed
            ValidationError: If there is nothing to close
        """
        reference = f"CLOSE-{year}"
        if any(e.source == EntrySource.CLOSING and e.reference == reference for e in self._entries):
            raise ConflictError(f"Year {year} has already been closed", field="year")
        balances = self.statements.closing_balances(year, self._entries)
        entry = self.poster.closing_entry(year, balances)
        if entry is None:
            raise ValidationError(f"Nothing to close for {year}", field="year")
        return self._record_entry(entry)

    def mark_remitted(self, schedule_id: str, as_of: Optional[date] = None) -> TaxScheduleEntry:
        """Mark a schedule entry as remitted.

        Raises:
            NotFoundError: If no schedule entry has that id
        """
        for entry in self.generate_schedule(as_of):
            if entry.id == schedule_id:
                self._remitted.add(schedule_id)
                self._commit()
                return self.find_schedule_entry(schedule_id, as_of)
        raise NotFoundError(f"Schedule entry '{schedule_id}' not found", field="schedule_id")

    def recompute_taxes(self, profile: Optional[TaxProfile] = None) -> TaxSummary:
        """Recompute every transaction's taxes, optionally under a new profile."""
        if profile is not None:
            self.profile = profile
            self.poster.profile = profile
            self.tax.profile = profile
        for transaction_id, transaction in self._transactions.items():
            self.tax.compute(transaction, self._classifications[transaction_id])
        self._commit()
        return self.tax.get_tax_summary()

    def reset(self) -> None:
        """Discard all books and start empty."""
        self._reset_books()
        self._commit()

    # Read side

    def get_state(self) -> EngineState:
        """Independent snapshot of the current state."""
        return EngineState(
            chart_accounts=tuple(self.registry.list_accounts()),
            custom_accounts=self.registry.custom_accounts(),
            transactions=tuple(self._transactions.values()),
            classifications=dict(self._classifications),
            journal_entries=tuple(self._entries),
            ledger_accounts=self.ledger.accounts(),
            tax_computations=self.tax.results(),
            remitted_schedule_ids=frozenset(self._remitted),
            schedules=tuple(self.generate_schedule()),
            last_updated=self._last_updated,
        )

    def list_accounts(self) -> list[ChartAccount]:
        return self.registry.list_accounts()

    def get_ledger_account(self, code: str) -> LedgerAccount:
        """Ledger for an account; an unused account has an empty ledger."""
        account = self.registry.resolve(code)
        ledger = self.ledger.get_account(code)
        if ledger is None:
            return LedgerAccount(
                account_code=account.code,
                account_name=account.name,
                account_class=account.account_class,
                normal_balance=account.normal_balance,
            )
        return ledger

    def journal_entries(self) -> list[JournalEntry]:
        return list(self._entries)

    def generate_trial_balance(self) -> TrialBalance:
        return self.statements.generate_trial_balance(self.ledger.accounts().values())

    def generate_statements(self, year: int) -> StatementDraft:
        return self.statements.generate_statements(year, self._entries)

    def available_years(self) -> list[int]:
        return self.statements.available_years(self._entries)

    def get_tax_summary(self) -> TaxSummary:
        return self.tax.get_tax_summary()

    def assess_income_tax(self, year: int) -> IncomeTaxAssessment:
        """CIT or PIT for a year from that year's statement figures."""
        draft = self.generate_statements(year)
        payroll = self.statements.period_activity(year, SALARIES, self._entries)
        return self.tax.assess_income_tax(
            year,
            draft.revenue,
            draft.cost_of_sales,
            draft.operating_expenses,
            annual_payroll=payroll,
        )

    def generate_schedule(self, as_of: Optional[date] = None) -> list[TaxScheduleEntry]:
        """Remittance schedule including yearly income tax."""
        assessments = [self.assess_income_tax(year) for year in self.available_years()]
        return self.tax.generate_schedule(as_of, self._remitted, assessments)

    def find_schedule_entry(self, schedule_id: str, as_of: Optional[date] = None) -> Optional[TaxScheduleEntry]:
        for entry in self.generate_schedule(as_of):
            if entry.id == schedule_id:
                return entry
        return None

    # Subscriptions

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register an observer called with the new state after each change.

        Returns:
            Function that removes this observer
        """
        self._observers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Observer) -> bool:
        """Remove an observer. Returns False if it was not registered."""
        try:
            self._observers.remove(callback)
        except ValueError:
            return False
        return True

    def _commit(self) -> None:
        self._last_updated = datetime.now(UTC)
        self._notify()
        if self.autosave and self.store is not None:
            self.save()

    def _notify(self) -> None:
        state = self.get_state()
        for callback in list(self._observers):
            try:
                callback(state)
            except Exception:
                logger.exception("Observer %r failed", callback)

    # Persistence

    def save(self) -> bool:
        """Save the current state to the store.

        Failures are logged and kept in ``last_persistence_error``; the
        in-memory state is left as it is.

        Returns:
            True if the snapshot was saved
        """
        if self.store is None:
            return False
        try:
            self.store.save(state_to_blob(self.get_state()))
        except PersistenceError as e:
            self.last_persistence_error = str(e)
            logger.error("Could not save snapshot: %s", e)
            return False
        self.last_persistence_error = None
        return True

    def load(self) -> bool:
        """Replace the in-memory books with the stored snapshot.

        The ledger is rebuilt by replaying the stored journal entries rather
        than trusting stored balances. If anything fails the current books
        are kept.

        Returns:
            True if a snapshot was loaded
        """
        if self.store is None:
            return False
        # Replay on a scratch ledger first so a bad snapshot leaves the books untouched
        try:
            blob = self.store.load()
            if blob is None:
                return False
            snapshot = blob_to_snapshot(blob)
            registry = ChartOfAccountsRegistry(snapshot.custom_accounts)
            ledger = LedgerStore(registry)
            ledger.rebuild_from_entries(snapshot.journal_entries)
        except (PersistenceError, DomainError) as e:
            self.last_persistence_error = str(e)
            logger.error("Could not load snapshot: %s", e)
            return False

        for code, stored in snapshot.ledger_balances.items():
            replayed = ledger.balance(code)
            if replayed != stored:
                logger.warning(
                    "Stored balance for %s (%s) differs from replayed balance (%s)",
                    code, stored, replayed,
                )

        self._reset_books(snapshot.custom_accounts)
        self.ledger.rebuild_from_entries(snapshot.journal_entries)
        self._entries = list(snapshot.journal_entries)
        self._transactions = {transaction.id: transaction for transaction in snapshot.transactions}
        for transaction in snapshot.transactions:
            self._classifications[transaction.id] = snapshot.classifications.get(
                transaction.id
            ) or self.classifier.classify(
                transaction.description, transaction.amount, transaction.category, transaction.type
            )
        self.tax.restore(snapshot.tax_computations)
        self._remitted = set(snapshot.remitted_schedule_ids)
        self._last_updated = snapshot.last_updated
        self.last_persistence_error = None
        logger.info(
            "Loaded %d transactions and %d journal entries",
            len(self._transactions),
            len(self._entries),
        )
        self._notify()
        return True

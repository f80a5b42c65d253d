"""Double-entry poster.

Turns a classified transaction into a balanced journal entry using a table
of debit/credit account selectors per transaction type. Also builds the
other entry kinds the books need: manual adjustments, depreciation and
year-end closing entries.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

from taxledger.domain.chart import ChartOfAccountsRegistry
from taxledger.domain.classifier import normalize_category
from taxledger.domain.entities import (
    ZERO,
    AccountClass,
    Classification,
    EntrySource,
    JournalEntry,
    JournalLine,
    NormalBalance,
    RawTransaction,
    TaxProfile,
    TaxType,
    TransactionType,
)
from taxledger.domain.errors import (
    InvalidAmountError,
    MissingNarrationError,
    UnbalancedEntryError,
    ValidationError,
    invalid_amount,
    missing_narration,
    unbalanced_entry,
)
from taxledger.domain.tax_rates import VAT_RATE
from taxledger.utils.amount_parser import round_money

logger = logging.getLogger(__name__)

CASH = "1000"
BANK = "1020"
INPUT_VAT = "1400"
ACCOUNTS_PAYABLE = "2000"
OUTPUT_VAT = "2200"
SHORT_TERM_LOANS = "2300"
LONG_TERM_LOANS = "2500"
OWNERS_CAPITAL = "3000"
RETAINED_EARNINGS = "3100"
DRAWINGS = "3200"
SALES = "4000"
GAIN_ON_DISPOSAL = "4300"
PURCHASES = "5010"
SALARIES = "5500"
DEPRECIATION = "5700"
OFFICE_SUPPLIES = "5820"
OFFICE_EQUIPMENT = "1540"

BANK_KEYWORDS = (" bank", "transfer", " pos ", "cheque", " trf", " nip ", " card")

# Keyword -> account, first match wins
REVENUE_ACCOUNTS = [
    ("service", "4010"),
    ("consult", "4010"),
    ("professional", "4010"),
    ("contract", "4020"),
    ("interest", "4200"),
    ("dividend", "4210"),
    (" rent", "4220"),
    ("other income", "4500"),
]

EXPENSE_ACCOUNTS = [
    ("salar", SALARIES),
    ("wage", SALARIES),
    ("payroll", SALARIES),
    (" rent", "5600"),
    ("lease", "5600"),
    ("utilit", "5610"),
    ("electric", "5610"),
    ("telephone", "5620"),
    ("internet", "5620"),
    ("airtime", "5620"),
    ("insurance", "5800"),
    ("repair", "5810"),
    ("maintenance", "5810"),
    ("audit", "5910"),
    ("legal", "5920"),
    ("lawyer", "5920"),
    ("professional", "5900"),
    ("consult", "5900"),
    ("technical", "5900"),
    ("advertis", "6000"),
    ("marketing", "6000"),
    ("travel", "6010"),
    ("entertainment", "6010"),
    ("training", "6020"),
    ("bank charge", "6030"),
    ("sms charge", "6030"),
    ("bad debt", "6040"),
    ("fuel", "6050"),
    ("diesel", "6050"),
    ("petrol", "6050"),
    ("transport", "6070"),
    ("uber", "6070"),
    ("bolt", "6070"),
    ("stamp duty", "6080"),
    ("levy", "6080"),
    ("interest", "6500"),
    ("royalt", "5900"),
    ("commission", "6000"),
    ("contract", "5900"),
    ("office", "5820"),
    ("suppl", "5820"),
    ("stationery", "5820"),
]

ASSET_ACCOUNTS = [
    ("vehicle", "1530"),
    (" car ", "1530"),
    ("truck", "1530"),
    ("furniture", "1550"),
    ("computer", "1560"),
    ("laptop", "1560"),
    ("machine", "1520"),
    ("generator", "1520"),
    ("plant", "1520"),
    ("building", "1510"),
    (" land", "1500"),
]

LIABILITY_ACCOUNTS = [
    ("long term loan", LONG_TERM_LOANS),
    ("long-term loan", LONG_TERM_LOANS),
    ("loan", SHORT_TERM_LOANS),
    (" vat", OUTPUT_VAT),
    ("withholding", "2220"),
    (" wht", "2220"),
    (" paye", "2210"),
    ("pension", "2230"),
    ("overdraft", "2310"),
]


def new_entry_id() -> str:
    """Fresh journal entry id."""
    return f"JE-{uuid.uuid4().hex}"


def _lookup(table: list[tuple[str, str]], text: str, default: str) -> str:
    text = f" {text} "
    for keyword, code in table:
        if keyword in text:
            return code
    return default


def _search_text(transaction: RawTransaction) -> str:
    return f"{normalize_category(transaction.category)} | {transaction.description.lower()}"


def settlement_account(transaction: RawTransaction) -> str:
    """Cash or bank, depending on how the money moved."""
    description = f" {transaction.description.lower()} "
    if any(keyword in description for keyword in BANK_KEYWORDS):
        return BANK
    return CASH


def revenue_account(transaction: RawTransaction) -> str:
    category = normalize_category(transaction.category)
    return _lookup(REVENUE_ACCOUNTS, category, SALES) if category else SALES


def expense_account(transaction: RawTransaction) -> str:
    category = normalize_category(transaction.category)
    code = _lookup(EXPENSE_ACCOUNTS, category, "")
    return code or _lookup(EXPENSE_ACCOUNTS, transaction.description.lower(), OFFICE_SUPPLIES)


def asset_account(transaction: RawTransaction) -> str:
    return _lookup(ASSET_ACCOUNTS, _search_text(transaction), OFFICE_EQUIPMENT)


def liability_account(transaction: RawTransaction) -> str:
    return _lookup(LIABILITY_ACCOUNTS, _search_text(transaction), ACCOUNTS_PAYABLE)


def loan_account(transaction: RawTransaction) -> str:
    text = _search_text(transaction)
    if "long term" in text or "long-term" in text:
        return LONG_TERM_LOANS
    return SHORT_TERM_LOANS


def _transfer_debit(transaction: RawTransaction) -> str:
    description = transaction.description.lower()
    if "withdraw" in description or "to cash" in description or "atm" in description:
        return CASH
    return BANK


def _transfer_credit(transaction: RawTransaction) -> str:
    return BANK if _transfer_debit(transaction) == CASH else CASH


def _constant(code: str) -> Callable[[RawTransaction], str]:
    return lambda transaction: code


# transaction type -> (debit selector, credit selector)
POSTING_RULES: dict[TransactionType, tuple[Callable, Callable]] = {
    TransactionType.INCOME: (settlement_account, revenue_account),
    TransactionType.EXPENSE: (expense_account, settlement_account),
    TransactionType.COST_OF_SALES: (_constant(PURCHASES), settlement_account),
    TransactionType.ASSET_PURCHASE: (asset_account, settlement_account),
    TransactionType.ASSET_DISPOSAL: (settlement_account, _constant(GAIN_ON_DISPOSAL)),
    TransactionType.LOAN_RECEIVED: (settlement_account, loan_account),
    TransactionType.LIABILITY_SETTLEMENT: (liability_account, settlement_account),
    TransactionType.EQUITY_INJECTION: (settlement_account, _constant(OWNERS_CAPITAL)),
    TransactionType.OWNER_DRAWING: (_constant(DRAWINGS), settlement_account),
    TransactionType.TRANSFER: (_transfer_debit, _transfer_credit),
}


def split_vat_inclusive(amount: Decimal) -> tuple[Decimal, Decimal]:
    """Split a VAT-inclusive amount into (net, vat) that add back to amount."""
    net = round_money(amount / (1 + VAT_RATE))
    return net, amount - net


class DoubleEntryPoster:
    """Builds balanced journal entries."""

    def __init__(self, registry: ChartOfAccountsRegistry, profile: Optional[TaxProfile] = None):
        """Initialize the poster.

        Args:
            registry: Chart of accounts used to validate and name accounts
            profile: Taxpayer settings; VAT is split out of postings only for
                registered filers whose prices include VAT
        """
        self.registry = registry
        self.profile = profile or TaxProfile()

    def _line(self, code: str, debit: Decimal = ZERO, credit: Decimal = ZERO, memo: str = "") -> JournalLine:
        account = self.registry.resolve(code)
        return JournalLine(
            account_code=account.code,
            account_name=account.name,
            debit=round_money(debit),
            credit=round_money(credit),
            memo=memo,
        )

    @staticmethod
    def validate(transaction: RawTransaction) -> None:
        """Reject transactions that cannot be posted.

        Raises:
            InvalidAmountError: If amount is missing, not a finite Decimal, or
                rounds to zero or less
            MissingNarrationError: If the description is empty
        """
        amount = transaction.amount
        if (
            not isinstance(amount, Decimal)
            or not amount.is_finite()
            or round_money(amount) <= 0
        ):
            raise InvalidAmountError(invalid_amount(amount))
        if not transaction.description or not transaction.description.strip():
            raise MissingNarrationError(missing_narration(transaction.id))

    @property
    def _splits_vat(self) -> bool:
        return self.profile.is_vat_registered and self.profile.prices_include_vat

    def post(
        self,
        transaction: RawTransaction,
        classification: Classification,
        entry_id: Optional[str] = None,
    ) -> JournalEntry:
        """Build the journal entry for a classified transaction.

        Args:
            transaction: Raw transaction
            classification: Classification of the transaction
            entry_id: Id to use instead of a freshly generated one

        Returns:
            Balanced journal entry

        Raises:
            InvalidAmountError: If amount is zero or negative
            MissingNarrationError: If the description is empty
            UnknownAccountError: If a selected account is missing from the chart
        """
        self.validate(transaction)
        amount = round_money(transaction.amount)
        debit_selector, credit_selector = POSTING_RULES[classification.transaction_type]
        debit_code = debit_selector(transaction)
        credit_code = credit_selector(transaction)

        transaction_type = classification.transaction_type
        net, vat = split_vat_inclusive(amount) if self._splits_vat else (amount, ZERO)
        if (
            vat > 0
            and transaction_type == TransactionType.INCOME
            and TaxType.VAT in classification.tax_types
        ):
            lines = [
                self._line(debit_code, debit=amount),
                self._line(credit_code, credit=net),
                self._line(OUTPUT_VAT, credit=vat, memo="Output VAT"),
            ]
        elif (
            vat > 0
            and transaction_type == TransactionType.COST_OF_SALES
            and TaxType.INPUT_VAT in classification.tax_types
        ):
            lines = [
                self._line(debit_code, debit=net),
                self._line(INPUT_VAT, debit=vat, memo="Input VAT"),
                self._line(credit_code, credit=amount),
            ]
        else:
            lines = [
                self._line(debit_code, debit=amount),
                self._line(credit_code, credit=amount),
            ]

        entry = JournalEntry(
            id=entry_id or new_entry_id(),
            date=transaction.date,
            narration=transaction.description.strip(),
            lines=tuple(lines),
            reference=transaction.id,
            source=EntrySource.TRANSACTION,
            transaction_type=transaction_type,
        )
        logger.debug(
            "Posted %s: Dr %s / Cr %s %s", entry.id, debit_code, credit_code, amount
        )
        return entry

    def post_manual(
        self,
        entry_date: date,
        narration: str,
        lines: Iterable[tuple],
        reference: Optional[str] = None,
        source: EntrySource = EntrySource.MANUAL,
    ) -> JournalEntry:
        """Validate and build a user-supplied journal entry.

        Args:
            entry_date: Posting date
            narration: Entry narration
            lines: (account_code, debit, credit) or (account_code, debit, credit, memo)
            reference: Optional external reference
            source: Entry source recorded on the entry

        Returns:
            Balanced journal entry

        Raises:
            MissingNarrationError: If narration is empty
            ValidationError: If a line is malformed or there are fewer than two lines
            UnknownAccountError: If a line references an unknown account
            UnbalancedEntryError: If debits and credits differ
        """
        if not narration or not narration.strip():
            raise MissingNarrationError("Journal entry narration cannot be empty")

        built = []
        for index, line in enumerate(lines, start=1):
            code = line[0]
            try:
                debit = round_money(Decimal(str(line[1] or 0)))
                credit = round_money(Decimal(str(line[2] or 0)))
            except ArithmeticError as e:
                raise ValidationError(f"Line {index}: invalid amount", field="lines") from e
            memo = line[3] if len(line) > 3 else ""
            if debit < 0 or credit < 0:
                raise ValidationError(f"Line {index}: amounts cannot be negative", field="lines")
            if (debit > 0) == (credit > 0):
                raise ValidationError(
                    f"Line {index}: exactly one of debit or credit must be set", field="lines"
                )
            built.append(self._line(code, debit=debit, credit=credit, memo=memo))

        if len(built) < 2:
            raise ValidationError("A journal entry needs at least two lines", field="lines")

        entry = JournalEntry(
            id=new_entry_id(),
            date=entry_date,
            narration=narration.strip(),
            lines=tuple(built),
            reference=reference,
            source=source,
        )
        if not entry.is_balanced:
            raise UnbalancedEntryError(unbalanced_entry(entry.total_debits, entry.total_credits))
        return entry

    def depreciation_entry(
        self, entry_date: date, asset_code: str, amount: Decimal, narration: Optional[str] = None
    ) -> JournalEntry:
        """Dr Depreciation Expense, Cr the asset's accumulated depreciation.

        Raises:
            InvalidAmountError: If amount is zero or negative
            ValidationError: If the asset has no accumulated depreciation account
        """
        if amount is None or round_money(amount) <= 0:
            raise InvalidAmountError(invalid_amount(amount))
        asset = self.registry.resolve(asset_code)
        contra = self.registry.find(asset_code[:-1] + "1")
        if (
            asset.account_class != AccountClass.ASSET
            or asset.sub_class != "fixed"
            or contra is None
            or contra.normal_balance != NormalBalance.CREDIT
        ):
            raise ValidationError(
                f"Account {asset_code} has no accumulated depreciation account",
                field="asset_code",
            )
        return self.post_manual(
            entry_date,
            narration or f"Depreciation - {asset.name}",
            [(DEPRECIATION, amount, 0), (contra.code, 0, amount)],
            source=EntrySource.DEPRECIATION,
        )

    def closing_entry(self, year: int, balances: dict[str, Decimal]) -> Optional[JournalEntry]:
        """Close revenue and expense balances into retained earnings.

        Args:
            year: Financial year being closed
            balances: Year-end balance of each revenue/expense account, signed
                so that positive means on the account's normal side

        Returns:
            Closing entry dated 31 December, or None when nothing needs closing
        """
        lines = []
        for code in sorted(balances):
            balance = round_money(balances[code])
            if balance == 0:
                continue
            account = self.registry.resolve(code)
            # Zero the account by posting its balance to the opposite side
            on_debit_side = (account.normal_balance == NormalBalance.CREDIT) == (balance > 0)
            if on_debit_side:
                lines.append(self._line(code, debit=abs(balance), memo="Closing"))
            else:
                lines.append(self._line(code, credit=abs(balance), memo="Closing"))
        if not lines:
            return None

        debits = sum((line.debit for line in lines), ZERO)
        credits = sum((line.credit for line in lines), ZERO)
        if debits > credits:
            lines.append(self._line(RETAINED_EARNINGS, credit=debits - credits, memo="Profit for the year"))
        elif credits > debits:
            lines.append(self._line(RETAINED_EARNINGS, debit=credits - debits, memo="Loss for the year"))

        return JournalEntry(
            id=new_entry_id(),
            date=date(year, 12, 31),
            narration=f"Closing entries for {year}",
            lines=tuple(lines),
            reference=f"CLOSE-{year}",
            source=EntrySource.CLOSING,
        )

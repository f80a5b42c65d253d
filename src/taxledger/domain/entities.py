"""Domain model entities for taxledger.

These are pure data classes representing bookkeeping and tax concepts,
independent of how snapshots are stored. Money values are Decimals rounded
to kobo; collections are tuples so that an entity can be shared safely
between the engine and its observers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

BALANCE_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0.00")


class AccountClass(str, Enum):
    """Top-level account class."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Side on which an account's balance increases."""

    DEBIT = "debit"
    CREDIT = "credit"


DEFAULT_NORMAL_BALANCE = {
    AccountClass.ASSET: NormalBalance.DEBIT,
    AccountClass.EXPENSE: NormalBalance.DEBIT,
    AccountClass.LIABILITY: NormalBalance.CREDIT,
    AccountClass.EQUITY: NormalBalance.CREDIT,
    AccountClass.REVENUE: NormalBalance.CREDIT,
}

SUB_CLASSES = {
    AccountClass.ASSET: ("current", "fixed"),
    AccountClass.LIABILITY: ("current", "non-current"),
    AccountClass.EQUITY: ("capital", "reserve", "contra"),
    AccountClass.REVENUE: ("operating", "other", "contra"),
    AccountClass.EXPENSE: ("cos", "operating", "admin", "finance", "tax"),
}


class RawTransactionType(str, Enum):
    """Coarse type supplied with a raw transaction."""

    INCOME = "income"
    EXPENSE = "expense"
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    OTHER = "other"


class TransactionType(str, Enum):
    """Semantic transaction type assigned by the classifier."""

    INCOME = "income"
    EXPENSE = "expense"
    COST_OF_SALES = "cost_of_sales"
    ASSET_PURCHASE = "asset_purchase"
    ASSET_DISPOSAL = "asset_disposal"
    LOAN_RECEIVED = "loan_received"
    LIABILITY_SETTLEMENT = "liability_settlement"
    EQUITY_INJECTION = "equity_injection"
    OWNER_DRAWING = "owner_drawing"
    TRANSFER = "transfer"


class TaxType(str, Enum):
    """Statutory tax kinds."""

    VAT = "VAT"
    INPUT_VAT = "INPUT_VAT"
    WHT = "WHT"
    CGT = "CGT"
    STAMP_DUTY = "STAMP_DUTY"
    INCOME_TAX = "INCOME_TAX"
    CIT = "CIT"
    PIT = "PIT"
    TET = "TET"
    NONE = "NONE"


class Confidence(str, Enum):
    """How sure the classifier is about a classification."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EntrySource(str, Enum):
    """What produced a journal entry."""

    TRANSACTION = "transaction"
    MANUAL = "manual"
    DEPRECIATION = "depreciation"
    CLOSING = "closing"


class ScheduleStatus(str, Enum):
    """Remittance status of a tax schedule entry."""

    DRAFT = "draft"
    DUE = "due"
    REMITTED = "remitted"


class TaxpayerType(str, Enum):
    """Kind of taxpayer the books belong to."""

    COMPANY = "company"
    INDIVIDUAL = "individual"


@dataclass(frozen=True)
class ChartAccount:
    """Chart-of-accounts entry."""

    code: str
    name: str
    account_class: AccountClass
    sub_class: str
    description: str = ""
    is_custom: bool = False
    normal_balance: Optional[NormalBalance] = None

    def __post_init__(self):
        if self.normal_balance is None:
            object.__setattr__(
                self, "normal_balance", DEFAULT_NORMAL_BALANCE[self.account_class]
            )

    @property
    def is_contra(self) -> bool:
        """True when the account's normal side is opposite to its class."""
        return self.normal_balance != DEFAULT_NORMAL_BALANCE[self.account_class]


@dataclass(frozen=True)
class RawTransaction:
    """Transaction as captured from manual entry, chat or file import."""

    id: str
    date: date
    description: str
    category: str
    amount: Decimal
    type: RawTransactionType = RawTransactionType.OTHER
    is_resident: bool = True
    acquisition_cost: Optional[Decimal] = None
    source: str = "manual"

    def __post_init__(self):
        # Plain numbers become Decimals; bool is never money
        for name in ("amount", "acquisition_cost"):
            value = getattr(self, name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                object.__setattr__(self, name, Decimal(str(value)))


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying a raw transaction."""

    transaction_type: TransactionType
    tax_types: tuple[TaxType, ...]
    confidence: Confidence
    rule_name: str = "fallback"
    payment_type: Optional[str] = None
    document_type: Optional[str] = None

    @property
    def tax_type(self) -> TaxType:
        """Primary tax type, or NONE when no tax applies."""
        return self.tax_types[0] if self.tax_types else TaxType.NONE


@dataclass(frozen=True)
class JournalLine:
    """Single debit or credit line of a journal entry."""

    account_code: str
    account_name: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    memo: str = ""

    def __post_init__(self):
        if self.debit < 0 or self.credit < 0:
            raise ValueError(f"Line for {self.account_code} has a negative amount")
        if (self.debit > 0) == (self.credit > 0):
            raise ValueError(
                f"Line for {self.account_code} must have exactly one of debit or credit"
            )


@dataclass(frozen=True)
class JournalEntry:
    """Balanced set of journal lines posted on one date."""

    id: str
    date: date
    narration: str
    lines: tuple[JournalLine, ...]
    reference: Optional[str] = None
    source: EntrySource = EntrySource.TRANSACTION
    transaction_type: Optional[TransactionType] = None

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debits - self.total_credits) < BALANCE_TOLERANCE


@dataclass(frozen=True)
class LedgerPosting:
    """Ledger line with the running balance after it was applied."""

    date: date
    entry_id: str
    narration: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class LedgerAccount:
    """Per-account ledger history."""

    account_code: str
    account_name: str
    account_class: AccountClass
    normal_balance: NormalBalance
    entries: tuple[LedgerPosting, ...] = ()
    closing_balance: Decimal = ZERO


@dataclass(frozen=True)
class TrialBalanceRow:
    """One non-zero account on the trial balance."""

    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """Trial balance with its balance check."""

    accounts: tuple[TrialBalanceRow, ...]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool

    @property
    def difference(self) -> Decimal:
        return self.total_debit - self.total_credit


@dataclass(frozen=True)
class StatementDraft:
    """Income statement and balance sheet figures for one year."""

    year: int
    revenue: Decimal
    cost_of_sales: Decimal
    gross_profit: Decimal
    operating_expenses: Decimal
    net_income: Decimal
    assets: Decimal
    liabilities: Decimal
    equity: Decimal
    current_earnings: Decimal

    @property
    def is_balanced(self) -> bool:
        difference = self.assets - (
            self.liabilities + self.equity + self.current_earnings
        )
        return abs(difference) < BALANCE_TOLERANCE


@dataclass(frozen=True)
class TaxLineItem:
    """One tax applied to a transaction."""

    tax_type: TaxType
    rate: Decimal
    tax_amount: Decimal
    note: str = ""
    warning: Optional[str] = None


@dataclass(frozen=True)
class TaxComputationResult:
    """Taxes computed for one transaction."""

    transaction_id: str
    transaction_date: date
    amount: Decimal
    taxes_applied: tuple[TaxLineItem, ...]
    total_tax: Decimal
    net_amount: Decimal
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class TaxSummary:
    """Running totals across all computed transactions."""

    total_vat: Decimal = ZERO
    input_vat_credit: Decimal = ZERO
    net_vat_payable: Decimal = ZERO
    total_wht: Decimal = ZERO
    total_cgt: Decimal = ZERO
    total_stamp_duty: Decimal = ZERO
    grand_total: Decimal = ZERO


@dataclass(frozen=True)
class TaxScheduleEntry:
    """Amount of one tax owed for one period."""

    id: str
    tax_type: TaxType
    period: str
    due_date: date
    tax_amount: Decimal
    status: ScheduleStatus
    transaction_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class TaxBand:
    """Slice of taxable income charged at one rate."""

    lower: Decimal
    upper: Optional[Decimal]
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


@dataclass(frozen=True)
class LevyResult:
    """One statutory levy charged on a company."""

    name: str
    base: Decimal
    rate: Decimal
    levy_payable: Decimal
    is_applicable: bool
    note: str = ""


@dataclass(frozen=True)
class CompanyLevies:
    """Police Trust Fund, NASENI, NSITF and ITF levies for a year."""

    police_levy: LevyResult
    naseni_levy: LevyResult
    nsitf: LevyResult
    itf: LevyResult

    @property
    def levies(self) -> tuple[LevyResult, ...]:
        return (self.police_levy, self.naseni_levy, self.nsitf, self.itf)

    @property
    def total_levies(self) -> Decimal:
        return sum((levy.levy_payable for levy in self.levies), ZERO)


@dataclass(frozen=True)
class IncomeTaxAssessment:
    """Company or personal income tax for a year."""

    year: int
    taxpayer_type: TaxpayerType
    tax_type: TaxType
    turnover: Decimal
    taxable_income: Decimal
    bands: tuple[TaxBand, ...]
    tax_due: Decimal
    tertiary_education_tax: Decimal = ZERO
    minimum_tax_applied: bool = False
    notes: tuple[str, ...] = ()
    levies: Optional[CompanyLevies] = None

    @property
    def total_due(self) -> Decimal:
        return self.tax_due + self.tertiary_education_tax


@dataclass(frozen=True)
class TaxProfile:
    """Taxpayer settings that change how taxes and postings are computed."""

    taxpayer_type: TaxpayerType = TaxpayerType.COMPANY
    is_vat_registered: bool = False
    prices_include_vat: bool = False
    industry: Optional[str] = None
    employee_count: int = 0


@dataclass(frozen=True)
class ProcessedTransaction:
    """Everything produced by processing one raw transaction."""

    transaction: RawTransaction
    classification: Classification
    journal_entry: JournalEntry
    tax_result: TaxComputationResult


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a bulk import."""

    imported: int
    skipped: int
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class EngineState:
    """Snapshot of everything the engine knows."""

    chart_accounts: tuple[ChartAccount, ...]
    custom_accounts: tuple[ChartAccount, ...]
    transactions: tuple[RawTransaction, ...]
    classifications: dict[str, Classification]
    journal_entries: tuple[JournalEntry, ...]
    ledger_accounts: dict[str, LedgerAccount]
    tax_computations: dict[str, TaxComputationResult]
    remitted_schedule_ids: frozenset[str] = field(default_factory=frozenset)
    schedules: tuple[TaxScheduleEntry, ...] = ()
    last_updated: Optional[datetime] = None

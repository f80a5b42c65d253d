"""Tests for the double-entry poster."""

import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal

from taxledger.domain.entities import (
    Classification,
    Confidence,
    EntrySource,
    RawTransactionType,
    TaxProfile,
    TaxType,
    TransactionType,
)
from taxledger.domain.errors import (
    InvalidAmountError,
    MissingNarrationError,
    UnbalancedEntryError,
    UnknownAccountError,
    ValidationError,
)
from taxledger.domain.posting import DoubleEntryPoster, split_vat_inclusive

SALE = Classification(TransactionType.INCOME, (TaxType.VAT,), Confidence.HIGH, "sales")
PURCHASE = Classification(TransactionType.COST_OF_SALES, (TaxType.INPUT_VAT,), Confidence.HIGH, "cost of sales")


def _lines(entry):
    return [(line.account_code, line.debit, line.credit) for line in entry.lines]


@pytest.fixture
def poster(registry):
    """Create a poster for an unregistered company."""
    return DoubleEntryPoster(registry)


@pytest.fixture
def vat_poster(registry):
    """Create a poster for a VAT-registered business quoting inclusive prices."""
    return DoubleEntryPoster(registry, TaxProfile(is_vat_registered=True, prices_include_vat=True))


def test_post_cash_sale(poster, make_transaction):
    """Test that a cash sale debits cash and credits sales revenue."""
    entry = poster.post(make_transaction(), SALE)

    assert _lines(entry) == [
        ("1000", Decimal("100000.00"), Decimal("0.00")),
        ("4000", Decimal("0.00"), Decimal("100000.00")),
    ]
    assert entry.is_balanced
    assert entry.reference == "T1"
    assert entry.source == EntrySource.TRANSACTION
    assert entry.transaction_type == TransactionType.INCOME
    assert entry.id.startswith("JE-")


def test_bank_keywords_select_bank(poster, make_transaction):
    """Test that bank transfers settle through the bank account."""
    entry = poster.post(make_transaction(description="NIP transfer from Chidi Ventures"), SALE)

    assert entry.lines[0].account_code == "1020"


def test_expense_account_from_category(poster, make_transaction):
    """Test that rent is posted to rent expense."""
    rent = Classification(TransactionType.EXPENSE, (TaxType.WHT,), Confidence.HIGH, "rent", payment_type="rent")
    entry = poster.post(
        make_transaction(description="Office rent", category="rent", type=RawTransactionType.EXPENSE), rent
    )

    assert _lines(entry) == [
        ("5600", Decimal("100000.00"), Decimal("0.00")),
        ("1000", Decimal("0.00"), Decimal("100000.00")),
    ]


def test_owner_drawing(poster, make_transaction):
    """Test that drawings debit the drawings contra-equity account."""
    drawing = Classification(TransactionType.OWNER_DRAWING, (), Confidence.HIGH, "owner drawing")
    entry = poster.post(make_transaction(description="Owner withdrawal", category="drawings"), drawing)

    assert [line.account_code for line in entry.lines] == ["3200", "1000"]


def test_vat_inclusive_sale_is_split(vat_poster, make_transaction):
    """Test that a registered filer's inclusive sale credits output VAT."""
    entry = vat_poster.post(make_transaction(amount="107500"), SALE)

    assert _lines(entry) == [
        ("1000", Decimal("107500.00"), Decimal("0.00")),
        ("4000", Decimal("0.00"), Decimal("100000.00")),
        ("2200", Decimal("0.00"), Decimal("7500.00")),
    ]
    assert entry.is_balanced


def test_vat_inclusive_purchase_is_split(vat_poster, make_transaction):
    """Test that a registered filer's inclusive purchase debits input VAT."""
    entry = vat_poster.post(
        make_transaction(amount="10750", description="Restock goods", category="purchases"), PURCHASE
    )

    assert _lines(entry) == [
        ("5010", Decimal("10000.00"), Decimal("0.00")),
        ("1400", Decimal("750.00"), Decimal("0.00")),
        ("1000", Decimal("0.00"), Decimal("10750.00")),
    ]


def test_unregistered_business_does_not_split_vat(poster, make_transaction):
    """Test that VAT is not split out for unregistered businesses."""
    entry = poster.post(make_transaction(amount="107500"), SALE)

    assert len(entry.lines) == 2


def test_split_vat_inclusive_adds_back():
    """Test that net and VAT always add back to the gross amount."""
    net, vat = split_vat_inclusive(Decimal("1000.00"))
    assert net + vat == Decimal("1000.00")
    assert net == Decimal("930.23")


def test_post_rejects_zero_amount(poster, make_transaction):
    """Test that zero amounts are rejected."""
    with pytest.raises(InvalidAmountError) as exc_info:
        poster.post(make_transaction(amount="0"), SALE)
    assert exc_info.value.field == "amount"


def test_post_rejects_sub_kobo_amount(poster, make_transaction):
    """Test that an amount rounding to zero kobo is rejected."""
    with pytest.raises(InvalidAmountError):
        poster.post(make_transaction(amount="0.004"), SALE)


def test_post_rejects_non_decimal_amount(poster, make_transaction):
    """Test that a string amount is rejected instead of failing later."""
    transaction = replace(make_transaction(), amount="100000")

    with pytest.raises(InvalidAmountError):
        poster.post(transaction, SALE)
    with pytest.raises(InvalidAmountError):
        poster.post(replace(make_transaction(), amount=Decimal("NaN")), SALE)


def test_vat_split_without_vat_keeps_two_lines(vat_poster, make_transaction):
    """Test that a sale too small to carry VAT posts no zero VAT line."""
    entry = vat_poster.post(make_transaction(amount="0.01"), SALE)

    assert _lines(entry) == [
        ("1000", Decimal("0.01"), Decimal("0.00")),
        ("4000", Decimal("0.00"), Decimal("0.01")),
    ]


def test_post_rejects_empty_description(poster, make_transaction):
    """Test that a transaction needs a narration."""
    with pytest.raises(MissingNarrationError):
        poster.post(make_transaction(description="   "), SALE)


class TestManualEntries:
    """Tests for manual journal entries."""

    def test_post_manual(self, poster):
        """Test a balanced manual entry."""
        entry = poster.post_manual(
            date(2024, 6, 30),
            "Accrue audit fee",
            [("5910", Decimal("250000"), 0), ("2100", 0, Decimal("250000"), "June accrual")],
        )

        assert entry.source == EntrySource.MANUAL
        assert entry.is_balanced
        assert entry.lines[1].memo == "June accrual"
        assert entry.lines[0].account_name == "Audit Fees"

    def test_unbalanced(self, poster):
        """Test that debits must equal credits."""
        with pytest.raises(UnbalancedEntryError):
            poster.post_manual(date(2024, 6, 30), "Typo", [("5910", 100, 0), ("2100", 0, 90)])

    def test_single_line(self, poster):
        """Test that an entry needs two lines."""
        with pytest.raises(ValidationError):
            poster.post_manual(date(2024, 6, 30), "One line", [("5910", 100, 0)])

    def test_both_sides_on_one_line(self, poster):
        """Test that a line cannot carry a debit and a credit."""
        with pytest.raises(ValidationError):
            poster.post_manual(date(2024, 6, 30), "Both", [("5910", 100, 100), ("2100", 0, 0)])

    def test_negative_amount(self, poster):
        """Test that negative line amounts are rejected."""
        with pytest.raises(ValidationError):
            poster.post_manual(date(2024, 6, 30), "Negative", [("5910", -100, 0), ("2100", 0, -100)])

    def test_amounts_rounding_to_zero(self, poster):
        """Test that a line whose amount rounds to zero kobo is rejected."""
        with pytest.raises(ValidationError):
            poster.post_manual(
                date(2024, 6, 30), "Dust", [("5910", Decimal("0.004"), 0), ("2100", 0, Decimal("0.004"))]
            )

    def test_unknown_account(self, poster):
        """Test that lines must use chart accounts."""
        with pytest.raises(UnknownAccountError):
            poster.post_manual(date(2024, 6, 30), "Unknown", [("9999", 100, 0), ("2100", 0, 100)])

    def test_empty_narration(self, poster):
        """Test that a manual entry needs a narration."""
        with pytest.raises(MissingNarrationError):
            poster.post_manual(date(2024, 6, 30), "", [("5910", 100, 0), ("2100", 0, 100)])


class TestDepreciation:
    """Tests for depreciation entries."""

    def test_depreciation_entry(self, poster):
        """Test that depreciation credits the accumulated depreciation account."""
        entry = poster.depreciation_entry(date(2024, 12, 31), "1530", Decimal("120000"))

        assert _lines(entry) == [
            ("5700", Decimal("120000.00"), Decimal("0.00")),
            ("1531", Decimal("0.00"), Decimal("120000.00")),
        ]
        assert entry.source == EntrySource.DEPRECIATION
        assert entry.narration == "Depreciation - Motor Vehicles"

    def test_non_depreciable_account(self, poster):
        """Test that only fixed assets with a contra account can be depreciated."""
        with pytest.raises(ValidationError):
            poster.depreciation_entry(date(2024, 12, 31), "1000", Decimal("100"))

    def test_zero_amount(self, poster):
        """Test that a depreciation charge must be positive."""
        with pytest.raises(InvalidAmountError):
            poster.depreciation_entry(date(2024, 12, 31), "1530", Decimal("0"))


class TestClosingEntry:
    """Tests for year-end closing entries."""

    def test_profit_closes_to_retained_earnings(self, poster):
        """Test closing revenue and expenses with a profit."""
        entry = poster.closing_entry(2024, {"4000": Decimal("400000"), "5610": Decimal("150000")})

        assert _lines(entry) == [
            ("4000", Decimal("400000.00"), Decimal("0.00")),
            ("5610", Decimal("0.00"), Decimal("150000.00")),
            ("3100", Decimal("0.00"), Decimal("250000.00")),
        ]
        assert entry.date == date(2024, 12, 31)
        assert entry.reference == "CLOSE-2024"
        assert entry.source == EntrySource.CLOSING
        assert entry.is_balanced

    def test_loss_debits_retained_earnings(self, poster):
        """Test closing with a loss."""
        entry = poster.closing_entry(2024, {"4000": Decimal("100"), "5600": Decimal("300")})

        assert entry.lines[-1].account_code == "3100"
        assert entry.lines[-1].debit == Decimal("200.00")

    def test_nothing_to_close(self, poster):
        """Test that zero balances produce no entry."""
        assert poster.closing_entry(2024, {"4000": Decimal("0")}) is None

"""Tests for the transaction classifier."""

import pytest
from decimal import Decimal

from taxledger.domain.classifier import (
    ClassificationRule,
    TransactionClassifier,
    normalize_category,
)
from taxledger.domain.entities import (
    Confidence,
    RawTransactionType,
    TaxType,
    TransactionType,
)


@pytest.fixture
def classifier():
    """Create a classifier with the default rule table."""
    return TransactionClassifier()


def test_sales_category(classifier):
    """Test that income in the sales category is VATable income."""
    result = classifier.classify("Invoice 12 paid", Decimal("100000"), "sales", RawTransactionType.INCOME)

    assert result.transaction_type == TransactionType.INCOME
    assert result.tax_types == (TaxType.VAT,)
    assert result.confidence == Confidence.HIGH


def test_rent_expense_category(classifier):
    """Test that rent paid attracts withholding tax."""
    result = classifier.classify("Office rent", Decimal("500000"), "Rent", RawTransactionType.EXPENSE)

    assert result.transaction_type == TransactionType.EXPENSE
    assert result.tax_type == TaxType.WHT
    assert result.payment_type == "rent"


def test_rent_income_category(classifier):
    """Test that rent received is rental income."""
    result = classifier.classify("Shop rent from tenant", Decimal("300000"), "rent", RawTransactionType.INCOME)

    assert result.transaction_type == TransactionType.INCOME
    assert result.rule_name == "rental income"


def test_category_takes_precedence_over_keywords(classifier):
    """Test that the category tier wins over description keywords."""
    result = classifier.classify("Paid consultant", Decimal("50000"), "salaries", RawTransactionType.EXPENSE)

    assert result.transaction_type == TransactionType.EXPENSE
    assert result.tax_types == ()
    assert result.rule_name == "operating expense"


def test_keyword_rent(classifier):
    """Test keyword classification when no category is given."""
    result = classifier.classify("Paid landlord for March", Decimal("120000"))

    assert result.transaction_type == TransactionType.EXPENSE
    assert result.payment_type == "rent"
    assert result.confidence == Confidence.MEDIUM


def test_keyword_does_not_match_inside_words(classifier):
    """Test that 'current' is not mistaken for rent."""
    result = classifier.classify("Current account top up", Decimal("1000"))

    assert result.rule_name != "rent"


def test_property_disposal_keywords(classifier):
    """Test that selling land attracts CGT and stamp duty."""
    result = classifier.classify("Sold plot of land at Lekki", Decimal("15000000"))

    assert result.transaction_type == TransactionType.ASSET_DISPOSAL
    assert result.tax_types == (TaxType.CGT, TaxType.STAMP_DUTY)
    assert result.document_type == "deed"


def test_round_amount_rent_heuristic(classifier):
    """Test that a large round expense is guessed as rent with low confidence."""
    result = classifier.classify("Payment to Mr Okafor", Decimal("600000"), raw_type=RawTransactionType.EXPENSE)

    assert result.rule_name == "round amount rent"
    assert result.confidence == Confidence.LOW


def test_raw_type_fallback(classifier):
    """Test that the raw type is used when nothing else matches."""
    result = classifier.classify("Mr Bello", Decimal("12345"), raw_type=RawTransactionType.EQUITY)

    assert result.transaction_type == TransactionType.EQUITY_INJECTION
    assert result.confidence == Confidence.MEDIUM


def test_fallback(classifier):
    """Test the low confidence fallback."""
    result = classifier.classify("xyz", Decimal("12345"))

    assert result.transaction_type == TransactionType.EXPENSE
    assert result.tax_types == ()
    assert result.confidence == Confidence.LOW
    assert result.rule_name == "fallback"


def test_custom_rules():
    """Test a classifier with its own rule table."""
    rule = ClassificationRule(
        "pos fees", TransactionType.EXPENSE, keywords=(("pos fee",),), confidence=Confidence.HIGH
    )
    classifier = TransactionClassifier(rules=[rule])

    assert classifier.classify("POS fee for May", Decimal("100")).rule_name == "pos fees"
    assert classifier.classify("Sale of goods", Decimal("100")).rule_name == "fallback"


def test_normalize_category():
    """Test category normalization."""
    assert normalize_category("  Cost_of-Sales ") == "cost of sales"
    assert normalize_category(None) == ""

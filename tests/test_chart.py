"""Tests for the chart of accounts registry."""

import pytest

from taxledger.domain.chart import ChartOfAccountsRegistry
from taxledger.domain.entities import AccountClass, ChartAccount, NormalBalance
from taxledger.domain.errors import (
    DuplicateAccountCodeError,
    InvalidAccountClassError,
    UnknownAccountError,
    ValidationError,
)


def test_standard_accounts_are_available(registry):
    """Test looking up standard accounts by code."""
    assert registry.resolve("1000").name == "Cash"
    assert registry.resolve("4000").account_class == AccountClass.REVENUE
    assert registry.resolve("2220").name == "WHT Payable"


def test_contra_accounts_have_opposite_normal_balance(registry):
    """Test that drawings, accumulated depreciation and returns are contra accounts."""
    assert registry.resolve("3200").normal_balance == NormalBalance.DEBIT
    assert registry.resolve("1531").normal_balance == NormalBalance.CREDIT
    assert registry.resolve("4100").normal_balance == NormalBalance.DEBIT
    assert registry.resolve("3200").is_contra


def test_resolve_unknown_account(registry):
    """Test that an unknown code raises with the field set."""
    assert registry.find("9999") is None
    with pytest.raises(UnknownAccountError) as exc_info:
        registry.resolve("9999")
    assert exc_info.value.field == "account_code"
    assert "9999" in str(exc_info.value)


def test_list_accounts_sorted(registry):
    """Test that accounts are listed in code order."""
    codes = [account.code for account in registry.list_accounts()]
    assert codes == sorted(codes)
    assert "1000" in codes


class TestAddCustomAccount:
    """Tests for adding custom accounts."""

    def test_add_custom_account(self, registry):
        """Test adding a custom account."""
        account = registry.add_custom_account("1030", "Zenith Bank", "asset", "current")

        assert account.is_custom
        assert account.normal_balance == NormalBalance.DEBIT
        assert registry.resolve("1030") == account
        assert registry.custom_accounts() == (account,)

    def test_add_contra_account(self, registry):
        """Test adding a custom account with an overridden normal balance."""
        account = registry.add_custom_account(
            "4110", "Sales Discounts", AccountClass.REVENUE, "contra", normal_balance="debit"
        )
        assert account.normal_balance == NormalBalance.DEBIT
        assert account.is_contra

    def test_duplicate_code(self, registry):
        """Test that a standard code cannot be reused."""
        with pytest.raises(DuplicateAccountCodeError):
            registry.add_custom_account("1000", "Another Cash", "asset", "current")

    def test_duplicate_custom_code(self, registry):
        """Test that a custom code cannot be added twice."""
        registry.add_custom_account("1030", "Zenith Bank", "asset", "current")
        with pytest.raises(DuplicateAccountCodeError):
            registry.add_custom_account("1030", "GTBank", "asset", "current")

    def test_invalid_class(self, registry):
        """Test that an unknown account class is rejected."""
        with pytest.raises(InvalidAccountClassError) as exc_info:
            registry.add_custom_account("8000", "Suspense", "suspense", "current")
        assert exc_info.value.field == "account_class"

    def test_invalid_sub_class(self, registry):
        """Test that a sub-class must belong to its class."""
        with pytest.raises(InvalidAccountClassError):
            registry.add_custom_account("1030", "Zenith Bank", "asset", "operating")

    def test_invalid_normal_balance(self, registry):
        """Test that the normal balance must be debit or credit."""
        with pytest.raises(InvalidAccountClassError):
            registry.add_custom_account("1030", "Zenith Bank", "asset", "current", normal_balance="up")

    def test_empty_name(self, registry):
        """Test that an empty name is a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            registry.add_custom_account("1030", "  ", "asset", "current")
        assert exc_info.value.field == "name"


def test_restore_skips_standard_codes():
    """Test that saved custom accounts cannot shadow standard accounts."""
    shadow = ChartAccount(
        code="1000", name="Fake Cash", account_class=AccountClass.ASSET, sub_class="current", is_custom=True
    )
    custom = ChartAccount(
        code="1030", name="Zenith Bank", account_class=AccountClass.ASSET, sub_class="current", is_custom=True
    )
    registry = ChartOfAccountsRegistry([shadow, custom])

    assert registry.resolve("1000").name == "Cash"
    assert registry.custom_accounts() == (custom,)

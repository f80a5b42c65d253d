"""Chart-of-accounts registry.

Holds the standard Nigerian SME chart of accounts plus any custom accounts
the user adds. Standard accounts are immutable; custom accounts are appended
after validation.
"""

import logging
from typing import Iterable, Optional

from taxledger.domain.entities import (
    AccountClass,
    ChartAccount,
    NormalBalance,
    SUB_CLASSES,
)
from taxledger.domain.errors import (
    DuplicateAccountCodeError,
    InvalidAccountClassError,
    UnknownAccountError,
    ValidationError,
    duplicate_account_code,
    unknown_account,
)

logger = logging.getLogger(__name__)

A = AccountClass
CR = NormalBalance.CREDIT
DR = NormalBalance.DEBIT

# (code, name, class, sub-class, description, normal balance override)
STANDARD_ACCOUNTS = [
    ("1000", "Cash", A.ASSET, "current", "Cash in hand", None),
    ("1010", "Petty Cash", A.ASSET, "current", "Petty cash fund", None),
    ("1020", "Bank", A.ASSET, "current", "Bank current account", None),
    ("1021", "Bank - Savings", A.ASSET, "current", "Bank savings account", None),
    ("1100", "Accounts Receivable", A.ASSET, "current", "Trade debtors", None),
    ("1110", "Allowance for Doubtful Debts", A.ASSET, "current", "Contra account", CR),
    ("1200", "Inventory", A.ASSET, "current", "Stock held for sale", None),
    ("1300", "Prepaid Expenses", A.ASSET, "current", "", None),
    ("1400", "Input VAT Receivable", A.ASSET, "current", "VAT paid on purchases", None),
    ("1410", "WHT Receivable", A.ASSET, "current", "WHT credit notes", None),
    ("1500", "Land", A.ASSET, "fixed", "", None),
    ("1510", "Buildings", A.ASSET, "fixed", "", None),
    ("1511", "Accumulated Depreciation - Buildings", A.ASSET, "fixed", "Contra account", CR),
    ("1520", "Plant and Machinery", A.ASSET, "fixed", "", None),
    ("1521", "Accumulated Depreciation - Plant", A.ASSET, "fixed", "Contra account", CR),
    ("1530", "Motor Vehicles", A.ASSET, "fixed", "", None),
    ("1531", "Accumulated Depreciation - Vehicles", A.ASSET, "fixed", "Contra account", CR),
    ("1540", "Office Equipment", A.ASSET, "fixed", "", None),
    ("1541", "Accumulated Depreciation - Equipment", A.ASSET, "fixed", "Contra account", CR),
    ("1550", "Furniture and Fittings", A.ASSET, "fixed", "", None),
    ("1551", "Accumulated Depreciation - Furniture", A.ASSET, "fixed", "Contra account", CR),
    ("1560", "Computer Equipment", A.ASSET, "fixed", "", None),
    ("1561", "Accumulated Depreciation - Computers", A.ASSET, "fixed", "Contra account", CR),
    ("2000", "Accounts Payable", A.LIABILITY, "current", "Trade creditors", None),
    ("2100", "Accrued Expenses", A.LIABILITY, "current", "", None),
    ("2200", "Output VAT Payable", A.LIABILITY, "current", "VAT charged on sales", None),
    ("2210", "PAYE Payable", A.LIABILITY, "current", "", None),
    ("2220", "WHT Payable", A.LIABILITY, "current", "WHT deducted from suppliers", None),
    ("2230", "Pension Payable", A.LIABILITY, "current", "", None),
    ("2300", "Short-term Loans", A.LIABILITY, "current", "", None),
    ("2310", "Bank Overdraft", A.LIABILITY, "current", "", None),
    ("2400", "Unearned Revenue", A.LIABILITY, "current", "", None),
    ("2500", "Long-term Loans", A.LIABILITY, "non-current", "", None),
    ("3000", "Owner's Capital", A.EQUITY, "capital", "Owner's investment", None),
    ("3010", "Share Capital", A.EQUITY, "capital", "", None),
    ("3100", "Retained Earnings", A.EQUITY, "reserve", "", None),
    ("3200", "Drawings", A.EQUITY, "contra", "Owner withdrawals", DR),
    ("3300", "Dividends Declared", A.EQUITY, "contra", "", DR),
    ("4000", "Sales Revenue", A.REVENUE, "operating", "Sales of goods", None),
    ("4010", "Service Revenue", A.REVENUE, "operating", "", None),
    ("4020", "Contract Revenue", A.REVENUE, "operating", "", None),
    ("4100", "Sales Returns", A.REVENUE, "contra", "Contra revenue", DR),
    ("4200", "Interest Income", A.REVENUE, "other", "", None),
    ("4210", "Dividend Income", A.REVENUE, "other", "", None),
    ("4220", "Rental Income", A.REVENUE, "other", "", None),
    ("4300", "Gain on Asset Disposal", A.REVENUE, "other", "", None),
    ("4500", "Other Income", A.REVENUE, "other", "", None),
    ("5000", "Cost of Goods Sold", A.EXPENSE, "cos", "", None),
    ("5010", "Purchases", A.EXPENSE, "cos", "", None),
    ("5020", "Purchases Returns", A.EXPENSE, "cos", "Contra", CR),
    ("5060", "Freight-In", A.EXPENSE, "cos", "", None),
    ("5500", "Salaries and Wages", A.EXPENSE, "operating", "", None),
    ("5600", "Rent Expense", A.EXPENSE, "operating", "", None),
    ("5610", "Utilities Expense", A.EXPENSE, "operating", "", None),
    ("5620", "Telephone and Internet", A.EXPENSE, "operating", "", None),
    ("5700", "Depreciation Expense", A.EXPENSE, "operating", "", None),
    ("5800", "Insurance Expense", A.EXPENSE, "operating", "", None),
    ("5810", "Repairs and Maintenance", A.EXPENSE, "operating", "", None),
    ("5820", "Office Supplies", A.EXPENSE, "operating", "", None),
    ("5900", "Professional Fees", A.EXPENSE, "operating", "", None),
    ("5910", "Audit Fees", A.EXPENSE, "operating", "", None),
    ("5920", "Legal Fees", A.EXPENSE, "operating", "", None),
    ("6000", "Advertising and Marketing", A.EXPENSE, "admin", "", None),
    ("6010", "Travel and Entertainment", A.EXPENSE, "admin", "", None),
    ("6020", "Training and Development", A.EXPENSE, "admin", "", None),
    ("6030", "Bank Charges", A.EXPENSE, "admin", "", None),
    ("6040", "Bad Debts Expense", A.EXPENSE, "admin", "", None),
    ("6050", "Fuel and Generator", A.EXPENSE, "admin", "", None),
    ("6070", "Transport Expense", A.EXPENSE, "admin", "", None),
    ("6080", "Stamp Duty and Levies", A.EXPENSE, "admin", "", None),
    ("6500", "Interest Expense", A.EXPENSE, "finance", "", None),
    ("7000", "Income Tax Expense", A.EXPENSE, "tax", "", None),
    ("7010", "Tertiary Education Tax", A.EXPENSE, "tax", "", None),
]


def standard_chart() -> tuple[ChartAccount, ...]:
    """Build the standard chart of accounts."""
    return tuple(
        ChartAccount(
            code=code,
            name=name,
            account_class=account_class,
            sub_class=sub_class,
            description=description,
            normal_balance=normal_balance,
        )
        for code, name, account_class, sub_class, description, normal_balance in STANDARD_ACCOUNTS
    )


class ChartOfAccountsRegistry:
    """Lookup and extension of the chart of accounts."""

    def __init__(self, custom_accounts: Iterable[ChartAccount] = ()):
        """Initialize the registry.

        Args:
            custom_accounts: Previously created custom accounts to restore
        """
        self._standard = {account.code: account for account in standard_chart()}
        self._custom: dict[str, ChartAccount] = {}
        self.restore_custom_accounts(custom_accounts)

    def find(self, code: str) -> Optional[ChartAccount]:
        """Get an account by code, or None if it does not exist."""
        return self._standard.get(code) or self._custom.get(code)

    def resolve(self, code: str) -> ChartAccount:
        """Get an account by code.

        Args:
            code: Account code

        Returns:
            Chart account

        Raises:
            UnknownAccountError: If the code is not in the chart
        """
        account = self.find(code)
        if account is None:
            raise UnknownAccountError(unknown_account(code))
        return account

    def add_custom_account(
        self,
        code: str,
        name: str,
        account_class: AccountClass | str,
        sub_class: str,
        description: str = "",
        normal_balance: NormalBalance | str | None = None,
    ) -> ChartAccount:
        """Add a custom account to the chart.

        Args:
            code: Unique account code
            name: Account name
            account_class: One of asset, liability, equity, revenue, expense
            sub_class: Sub-class valid for the account class
            description: Optional description
            normal_balance: Override for contra accounts; defaults from class

        Returns:
            The new chart account

        Raises:
            DuplicateAccountCodeError: If the code is already used
            InvalidAccountClassError: If class or sub-class is not recognised
            ValidationError: If code or name is empty
        """
        code = (code or "").strip()
        name = (name or "").strip()
        if not code:
            raise ValidationError("Account code cannot be empty", field="code")
        if not name:
            raise ValidationError("Account name cannot be empty", field="name")
        if self.find(code) is not None:
            raise DuplicateAccountCodeError(duplicate_account_code(code))

        try:
            account_class = AccountClass(account_class)
        except ValueError:
            valid = ", ".join(c.value for c in AccountClass)
            raise InvalidAccountClassError(
                f"Unknown account class '{account_class}'. Valid classes: {valid}"
            )
        if sub_class not in SUB_CLASSES[account_class]:
            valid = ", ".join(SUB_CLASSES[account_class])
            raise InvalidAccountClassError(
                f"Unknown sub-class '{sub_class}' for {account_class.value}. "
                f"Valid sub-classes: {valid}"
            )
        if normal_balance is not None:
            try:
                normal_balance = NormalBalance(normal_balance)
            except ValueError:
                raise InvalidAccountClassError(
                    f"Unknown normal balance '{normal_balance}'. Use debit or credit"
                )

        account = ChartAccount(
            code=code,
            name=name,
            account_class=account_class,
            sub_class=sub_class,
            description=description,
            is_custom=True,
            normal_balance=normal_balance,
        )
        self._custom[code] = account
        logger.info("Added custom account %s %s", code, name)
        return account

    def restore_custom_accounts(self, accounts: Iterable[ChartAccount]) -> None:
        """Replace the custom accounts with previously saved ones."""
        self._custom = {}
        for account in accounts:
            if account.code in self._standard:
                logger.warning(
                    "Ignoring saved custom account %s: code is a standard account",
                    account.code,
                )
                continue
            self._custom[account.code] = account

    def custom_accounts(self) -> tuple[ChartAccount, ...]:
        """Custom accounts in creation order."""
        return tuple(self._custom.values())

    def list_accounts(self) -> list[ChartAccount]:
        """All standard and custom accounts sorted by code."""
        accounts = list(self._standard.values()) + list(self._custom.values())
        return sorted(accounts, key=lambda account: account.code)

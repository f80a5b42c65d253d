"""Transaction classifier.

Maps a raw transaction onto a semantic transaction type and the taxes that
apply to it using an ordered rule table. Rules are tried in order and the
first match wins:

1. explicit category aliases
2. description keywords
3. numeric heuristics
4. the raw transaction type supplied by the caller

When nothing matches, the transaction is treated as a plain expense with no
tax and low confidence. Classification is a pure function of its inputs so
that replaying the same transactions always reproduces the same books.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from taxledger.domain.entities import (
    Classification,
    Confidence,
    RawTransactionType,
    TaxType,
    TransactionType,
)

T = TransactionType
R = RawTransactionType
HIGH = Confidence.HIGH
MEDIUM = Confidence.MEDIUM
LOW = Confidence.LOW


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the classification table.

    A rule matches when every configured condition holds:

    - ``categories``: the normalized category equals one of the aliases
    - ``keywords``: each group has at least one substring in the description
    - ``raw_types``: the raw type is listed (a missing raw type counts as
      ``other``)
    - ``min_amount`` / ``round_to``: the amount is at least ``min_amount``
      and an exact multiple of ``round_to``
    """

    name: str
    transaction_type: TransactionType
    tax_types: tuple[TaxType, ...] = ()
    categories: tuple[str, ...] = ()
    keywords: tuple[tuple[str, ...], ...] = ()
    raw_types: tuple[RawTransactionType, ...] = ()
    min_amount: Optional[Decimal] = None
    round_to: Optional[Decimal] = None
    payment_type: Optional[str] = None
    document_type: Optional[str] = None
    confidence: Confidence = HIGH

    def matches(
        self,
        description: str,
        amount: Decimal,
        category: str,
        raw_type: Optional[RawTransactionType],
    ) -> bool:
        if self.raw_types and raw_type not in self.raw_types:
            return False
        if self.categories and category not in self.categories:
            return False
        for group in self.keywords:
            if not any(keyword in description for keyword in group):
                return False
        if self.min_amount is not None and amount < self.min_amount:
            return False
        if self.round_to is not None and amount % self.round_to != 0:
            return False
        return True

    def to_classification(self) -> Classification:
        return Classification(
            transaction_type=self.transaction_type,
            tax_types=self.tax_types,
            confidence=self.confidence,
            rule_name=self.name,
            payment_type=self.payment_type,
            document_type=self.document_type,
        )


# Tier 1: category aliases
CATEGORY_RULES = [
    ClassificationRule(
        "sales", T.INCOME, (TaxType.VAT,),
        categories=("sales", "sale", "revenue", "invoice", "subscription"),
        raw_types=(R.INCOME, R.OTHER),
    ),
    ClassificationRule(
        "service income", T.INCOME, (TaxType.VAT,),
        categories=("service", "services", "service income", "consulting income"),
        raw_types=(R.INCOME, R.OTHER),
    ),
    ClassificationRule(
        "interest income", T.INCOME, (TaxType.WHT,),
        categories=("interest", "interest income"),
        raw_types=(R.INCOME,),
        payment_type="interest",
    ),
    ClassificationRule(
        "dividend income", T.INCOME, (TaxType.WHT,),
        categories=("dividend", "dividends", "dividend income"),
        raw_types=(R.INCOME,),
        payment_type="dividends",
    ),
    ClassificationRule(
        "rental income", T.INCOME, (TaxType.WHT,),
        categories=("rent", "rental income", "rent income"),
        raw_types=(R.INCOME,),
        payment_type="rent",
    ),
    ClassificationRule(
        "rent", T.EXPENSE, (TaxType.WHT,),
        categories=("rent", "rent expense", "lease"),
        payment_type="rent",
    ),
    ClassificationRule(
        "professional fees", T.EXPENSE, (TaxType.WHT,),
        categories=("professional", "professional fees", "legal", "audit", "accounting"),
        payment_type="professional_fees_company",
    ),
    ClassificationRule(
        "consultancy", T.EXPENSE, (TaxType.WHT,),
        categories=("consultancy", "consulting"),
        payment_type="consultancy",
    ),
    ClassificationRule(
        "technical services", T.EXPENSE, (TaxType.WHT,),
        categories=("technical", "technical services"),
        payment_type="technical_services",
    ),
    ClassificationRule(
        "commissions", T.EXPENSE, (TaxType.WHT,),
        categories=("commission", "commissions"),
        payment_type="commissions",
    ),
    ClassificationRule(
        "contracts", T.EXPENSE, (TaxType.WHT,),
        categories=("contract", "contracts", "construction"),
        payment_type="contracts",
    ),
    ClassificationRule(
        "royalties", T.EXPENSE, (TaxType.WHT,),
        categories=("royalty", "royalties", "license fee"),
        payment_type="royalties",
    ),
    ClassificationRule(
        "cost of sales", T.COST_OF_SALES, (TaxType.INPUT_VAT,),
        categories=("cogs", "cost of sales", "inventory", "stock", "purchases", "purchase"),
    ),
    ClassificationRule(
        "property disposal", T.ASSET_DISPOSAL, (TaxType.CGT, TaxType.STAMP_DUTY),
        categories=("property sale", "land sale", "building sale"),
        document_type="deed",
    ),
    ClassificationRule(
        "share disposal", T.ASSET_DISPOSAL, (TaxType.CGT, TaxType.STAMP_DUTY),
        categories=("share sale", "shares", "share transfer"),
        document_type="share_transfer",
    ),
    ClassificationRule(
        "asset disposal", T.ASSET_DISPOSAL, (TaxType.CGT,),
        categories=("asset sale", "asset disposal", "disposal"),
    ),
    ClassificationRule(
        "asset purchase", T.ASSET_PURCHASE,
        categories=("equipment", "asset", "fixed asset", "vehicle", "furniture",
                    "computer", "machinery", "land", "building"),
    ),
    ClassificationRule(
        "loan repayment", T.LIABILITY_SETTLEMENT,
        categories=("loan repayment", "supplier payment", "payable", "creditor"),
    ),
    ClassificationRule(
        "loan received", T.LOAN_RECEIVED,
        categories=("loan", "loan received", "loan disbursement"),
        raw_types=(R.INCOME, R.LIABILITY, R.OTHER),
    ),
    ClassificationRule(
        "loan repayment", T.LIABILITY_SETTLEMENT,
        categories=("loan",),
        raw_types=(R.EXPENSE,),
    ),
    ClassificationRule(
        "equity injection", T.EQUITY_INJECTION,
        categories=("equity", "capital", "owner investment", "investment"),
    ),
    ClassificationRule(
        "owner drawing", T.OWNER_DRAWING,
        categories=("drawings", "drawing", "owner drawing", "withdrawal"),
    ),
    ClassificationRule(
        "transfer", T.TRANSFER, (TaxType.STAMP_DUTY,),
        categories=("transfer", "bank transfer"),
        document_type="bank_transfer",
    ),
    ClassificationRule(
        "operating expense", T.EXPENSE,
        categories=("payroll", "salary", "salaries", "wages", "utilities", "electricity",
                    "telephone", "internet", "insurance", "repairs", "maintenance",
                    "office", "supplies", "advertising", "marketing", "travel",
                    "training", "bank charges", "transport", "fuel", "interest",
                    "bad debt", "expense", "expenses"),
    ),
]

# Tier 2: description keywords
KEYWORD_RULES = [
    ClassificationRule(
        "property disposal", T.ASSET_DISPOSAL, (TaxType.CGT, TaxType.STAMP_DUTY),
        keywords=(("sold", "sale of", "disposal", "disposed"),
                  (" land", "property", "building", "house", "plot")),
        document_type="deed", confidence=MEDIUM,
    ),
    ClassificationRule(
        "share disposal", T.ASSET_DISPOSAL, (TaxType.CGT, TaxType.STAMP_DUTY),
        keywords=(("sold", "sale of", "transfer of"), ("share", "stock", "equity")),
        document_type="share_transfer", confidence=MEDIUM,
    ),
    ClassificationRule(
        "asset disposal", T.ASSET_DISPOSAL, (TaxType.CGT,),
        keywords=(("sold", "sale of", "disposal", "disposed"),
                  ("vehicle", "car", "truck", "equipment", "machine", "generator",
                   "laptop", "furniture", "asset")),
        confidence=MEDIUM,
    ),
    ClassificationRule(
        "capital gain", T.ASSET_DISPOSAL, (TaxType.CGT,),
        keywords=(("capital gain",),), confidence=MEDIUM,
    ),
    ClassificationRule(
        "loan repayment", T.LIABILITY_SETTLEMENT,
        keywords=(("loan repayment", "repay loan", "loan repaid", "repaid loan"),),
        confidence=MEDIUM,
    ),
    ClassificationRule(
        "loan received", T.LOAN_RECEIVED,
        keywords=(("loan disbursement", "loan received", "loan from", "borrowed"),),
        confidence=MEDIUM,
    ),
    ClassificationRule(
        "owner drawing", T.OWNER_DRAWING,
        keywords=(("drawings", "owner withdrawal", "personal use"),), confidence=MEDIUM,
    ),
    ClassificationRule(
        "equity injection", T.EQUITY_INJECTION,
        keywords=(("capital injection", "capital contribution", "owner investment",
                   "invested"),),
        confidence=MEDIUM,
    ),
    ClassificationRule(
        "dividend income", T.INCOME, (TaxType.WHT,),
        keywords=(("dividend",),), raw_types=(R.INCOME,),
        payment_type="dividends", confidence=MEDIUM,
    ),
    ClassificationRule(
        "interest income", T.INCOME, (TaxType.WHT,),
        keywords=(("interest",),), raw_types=(R.INCOME,),
        payment_type="interest", confidence=MEDIUM,
    ),
    ClassificationRule(
        "sales", T.INCOME, (TaxType.VAT,),
        keywords=(("sale", "sold", "invoice", "revenue", "payment from", "received from"),),
        raw_types=(R.INCOME, R.OTHER), confidence=MEDIUM,
    ),
    ClassificationRule(
        "professional fees", T.EXPENSE, (TaxType.WHT,),
        keywords=(("professional", "legal fee", "lawyer", "audit", "accounting fee"),),
        payment_type="professional_fees_company", confidence=MEDIUM,
    ),
    ClassificationRule(
        "consultancy", T.EXPENSE, (TaxType.WHT,),
        keywords=(("consultancy", "consultant", "consulting"),),
        payment_type="consultancy", confidence=MEDIUM,
    ),
    ClassificationRule(
        "technical services", T.EXPENSE, (TaxType.WHT,),
        keywords=(("technical service", "technical support"),),
        payment_type="technical_services", confidence=MEDIUM,
    ),
    ClassificationRule(
        "rent", T.EXPENSE, (TaxType.WHT,),
        keywords=((" rent", "landlord", "lease"),),
        payment_type="rent", confidence=MEDIUM,
    ),
    ClassificationRule(
        "royalties", T.EXPENSE, (TaxType.WHT,),
        keywords=(("royalty", "royalties", "license fee", "licence fee"),),
        payment_type="royalties", confidence=MEDIUM,
    ),
    ClassificationRule(
        "contracts", T.EXPENSE, (TaxType.WHT,),
        keywords=(("contract", "construction"),),
        payment_type="contracts", confidence=MEDIUM,
    ),
    ClassificationRule(
        "commissions", T.EXPENSE, (TaxType.WHT,),
        keywords=(("commission",),),
        payment_type="commissions", confidence=MEDIUM,
    ),
    ClassificationRule(
        "operating expense", T.EXPENSE,
        keywords=(("salary", "salaries", "payroll", "wages", "fuel", "diesel", "petrol",
                   "electricity", "ikedc", "ekedc", "internet", "airtime", "data bundle",
                   "mtn", " glo ", "airtel", "uber", "bolt", "transport", "insurance",
                   "bank charge", "sms charge", "maintenance", "repair", "stationery",
                   "supplies", "advertising", "marketing", "training", "travel"),),
        confidence=MEDIUM,
    ),
    ClassificationRule(
        "cost of sales", T.COST_OF_SALES, (TaxType.INPUT_VAT,),
        keywords=(("purchase", "bought", "restock", "inventory", "goods"),),
        confidence=MEDIUM,
    ),
    ClassificationRule(
        "asset purchase", T.ASSET_PURCHASE,
        keywords=(("equipment", "laptop", "computer", "vehicle", "car ", "truck",
                   "furniture", "generator", "machine", "building", " land"),),
        raw_types=(R.EXPENSE, R.ASSET, R.OTHER), confidence=MEDIUM,
    ),
    ClassificationRule(
        "transfer", T.TRANSFER, (TaxType.STAMP_DUTY,),
        keywords=(("transfer", "trf", " nip "),),
        raw_types=(R.ASSET, R.OTHER),
        document_type="bank_transfer", confidence=MEDIUM,
    ),
]

# Tier 3: numeric heuristics
NUMERIC_RULES = [
    ClassificationRule(
        "round amount rent", T.EXPENSE, (TaxType.WHT,),
        raw_types=(R.EXPENSE,),
        min_amount=Decimal("250000"), round_to=Decimal("50000"),
        payment_type="rent", confidence=LOW,
    ),
]

# Tier 4: caller-supplied raw type
RAW_TYPE_RULES = [
    ClassificationRule(
        "income", T.INCOME, (TaxType.INCOME_TAX,), raw_types=(R.INCOME,), confidence=MEDIUM,
    ),
    ClassificationRule(
        "asset", T.ASSET_PURCHASE, raw_types=(R.ASSET,), confidence=MEDIUM,
    ),
    ClassificationRule(
        "liability", T.LOAN_RECEIVED, raw_types=(R.LIABILITY,), confidence=MEDIUM,
    ),
    ClassificationRule(
        "equity", T.EQUITY_INJECTION, raw_types=(R.EQUITY,), confidence=MEDIUM,
    ),
]

FALLBACK = Classification(
    transaction_type=T.EXPENSE,
    tax_types=(),
    confidence=LOW,
    rule_name="fallback",
)


def normalize_category(category: Optional[str]) -> str:
    """Lower-case a category and collapse separators to single spaces."""
    if not category:
        return ""
    return re.sub(r"[\s_\-/]+", " ", category.strip().lower())


class TransactionClassifier:
    """Rule-table transaction classifier."""

    def __init__(self, rules: Optional[list[ClassificationRule]] = None):
        self.rules = rules if rules is not None else (
            CATEGORY_RULES + KEYWORD_RULES + NUMERIC_RULES + RAW_TYPE_RULES
        )

    def classify(
        self,
        description: str,
        amount: Decimal,
        category: Optional[str] = None,
        raw_type: Optional[RawTransactionType] = None,
    ) -> Classification:
        """Classify a transaction.

        Args:
            description: Free-text description
            amount: Transaction amount (magnitude)
            category: Optional category label
            raw_type: Optional coarse type supplied with the transaction

        Returns:
            Classification from the first matching rule, or the fallback
        """
        # Padding lets keywords anchor on word edges, e.g. " rent"
        description = f" {(description or '').lower()} "
        category = normalize_category(category)
        amount = abs(Decimal(amount))
        raw_type = RawTransactionType(raw_type) if raw_type else RawTransactionType.OTHER

        for rule in self.rules:
            if rule.categories and not category:
                continue
            if rule.matches(description, amount, category, raw_type):
                return rule.to_classification()
        return FALLBACK

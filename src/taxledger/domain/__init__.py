"""Domain layer for taxledger."""

from taxledger.domain.chart import ChartOfAccountsRegistry
from taxledger.domain.classifier import TransactionClassifier
from taxledger.domain.ledger import LedgerStore
from taxledger.domain.posting import DoubleEntryPoster
from taxledger.domain.statements import StatementService
from taxledger.domain.tax import TaxComputationEngine

__all__ = [
    "ChartOfAccountsRegistry",
    "TransactionClassifier",
    "LedgerStore",
    "DoubleEntryPoster",
    "StatementService",
    "TaxComputationEngine",
]

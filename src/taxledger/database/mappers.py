"""Mapper functions to convert between domain entities and snapshot blobs.

A snapshot blob is a JSON-compatible dict. Money is stored as strings so
that Decimal values survive the round trip exactly, dates as ISO strings and
enums by value. Older snapshot versions are upgraded on the way in.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from taxledger.domain import entities as domain
from taxledger.domain.errors import PersistenceError

SNAPSHOT_VERSION = 2


@dataclass
class SnapshotData:
    """Decoded contents of a snapshot blob."""

    custom_accounts: list[domain.ChartAccount] = field(default_factory=list)
    transactions: list[domain.RawTransaction] = field(default_factory=list)
    classifications: dict[str, domain.Classification] = field(default_factory=dict)
    journal_entries: list[domain.JournalEntry] = field(default_factory=list)
    ledger_balances: dict[str, Decimal] = field(default_factory=dict)
    tax_computations: list[domain.TaxComputationResult] = field(default_factory=list)
    remitted_schedule_ids: set[str] = field(default_factory=set)
    last_updated: Optional[datetime] = None


def _money(value: Any) -> Decimal:
    return Decimal(str(value))


def _optional_money(value: Any) -> Optional[Decimal]:
    return None if value is None else _money(value)


def chart_account_to_dict(account: domain.ChartAccount) -> dict:
    return {
        "code": account.code,
        "name": account.name,
        "account_class": account.account_class.value,
        "sub_class": account.sub_class,
        "description": account.description,
        "normal_balance": account.normal_balance.value,
    }


def chart_account_from_dict(data: dict) -> domain.ChartAccount:
    return domain.ChartAccount(
        code=data["code"],
        name=data["name"],
        account_class=domain.AccountClass(data["account_class"]),
        sub_class=data["sub_class"],
        description=data.get("description", ""),
        is_custom=True,
        normal_balance=domain.NormalBalance(data["normal_balance"]) if data.get("normal_balance") else None,
    )


def transaction_to_dict(transaction: domain.RawTransaction) -> dict:
    return {
        "id": transaction.id,
        "date": transaction.date.isoformat(),
        "description": transaction.description,
        "category": transaction.category,
        "amount": str(transaction.amount),
        "type": transaction.type.value,
        "is_resident": transaction.is_resident,
        "acquisition_cost": None if transaction.acquisition_cost is None else str(transaction.acquisition_cost),
        "source": transaction.source,
    }


def transaction_from_dict(data: dict) -> domain.RawTransaction:
    return domain.RawTransaction(
        id=data["id"],
        date=date.fromisoformat(data["date"]),
        description=data["description"],
        category=data.get("category", ""),
        amount=_money(data["amount"]),
        type=domain.RawTransactionType(data.get("type", "other")),
        is_resident=data.get("is_resident", True),
        acquisition_cost=_optional_money(data.get("acquisition_cost")),
        source=data.get("source", "manual"),
    )


def classification_to_dict(classification: domain.Classification) -> dict:
    return {
        "transaction_type": classification.transaction_type.value,
        "tax_types": [tax_type.value for tax_type in classification.tax_types],
        "confidence": classification.confidence.value,
        "rule_name": classification.rule_name,
        "payment_type": classification.payment_type,
        "document_type": classification.document_type,
    }


def classification_from_dict(data: dict) -> domain.Classification:
    return domain.Classification(
        transaction_type=domain.TransactionType(data["transaction_type"]),
        tax_types=tuple(domain.TaxType(value) for value in data.get("tax_types", [])),
        confidence=domain.Confidence(data.get("confidence", "low")),
        rule_name=data.get("rule_name", "fallback"),
        payment_type=data.get("payment_type"),
        document_type=data.get("document_type"),
    )


def journal_entry_to_dict(entry: domain.JournalEntry) -> dict:
    return {
        "id": entry.id,
        "date": entry.date.isoformat(),
        "narration": entry.narration,
        "reference": entry.reference,
        "source": entry.source.value,
        "transaction_type": entry.transaction_type.value if entry.transaction_type else None,
        "lines": [
            {
                "account_code": line.account_code,
                "account_name": line.account_name,
                "debit": str(line.debit),
                "credit": str(line.credit),
                "memo": line.memo,
            }
            for line in entry.lines
        ],
    }


def journal_entry_from_dict(data: dict) -> domain.JournalEntry:
    transaction_type = data.get("transaction_type")
    return domain.JournalEntry(
        id=data["id"],
        date=date.fromisoformat(data["date"]),
        narration=data["narration"],
        reference=data.get("reference"),
        source=domain.EntrySource(data.get("source", "transaction")),
        transaction_type=domain.TransactionType(transaction_type) if transaction_type else None,
        lines=tuple(
            domain.JournalLine(
                account_code=line["account_code"],
                account_name=line.get("account_name", ""),
                debit=_money(line.get("debit", "0")),
                credit=_money(line.get("credit", "0")),
                memo=line.get("memo", ""),
            )
            for line in data["lines"]
        ),
    )


def tax_result_to_dict(result: domain.TaxComputationResult) -> dict:
    return {
        "transaction_id": result.transaction_id,
        "transaction_date": result.transaction_date.isoformat(),
        "amount": str(result.amount),
        "total_tax": str(result.total_tax),
        "net_amount": str(result.net_amount),
        "warnings": list(result.warnings),
        "taxes_applied": [
            {
                "tax_type": item.tax_type.value,
                "rate": str(item.rate),
                "tax_amount": str(item.tax_amount),
                "note": item.note,
                "warning": item.warning,
            }
            for item in result.taxes_applied
        ],
    }


def tax_result_from_dict(data: dict) -> domain.TaxComputationResult:
    return domain.TaxComputationResult(
        transaction_id=data["transaction_id"],
        transaction_date=date.fromisoformat(data["transaction_date"]),
        amount=_money(data["amount"]),
        total_tax=_money(data["total_tax"]),
        net_amount=_money(data["net_amount"]),
        warnings=tuple(data.get("warnings", [])),
        taxes_applied=tuple(
            domain.TaxLineItem(
                tax_type=domain.TaxType(item["tax_type"]),
                rate=_money(item["rate"]),
                tax_amount=_money(item["tax_amount"]),
                note=item.get("note", ""),
                warning=item.get("warning"),
            )
            for item in data.get("taxes_applied", [])
        ),
    )


def schedule_entry_to_dict(entry: domain.TaxScheduleEntry) -> dict:
    return {
        "id": entry.id,
        "tax_type": entry.tax_type.value,
        "period": entry.period,
        "due_date": entry.due_date.isoformat(),
        "tax_amount": str(entry.tax_amount),
        "status": entry.status.value,
        "transaction_ids": list(entry.transaction_ids),
    }


def state_to_blob(state: domain.EngineState) -> dict:
    """Convert an engine state snapshot to a versioned blob."""
    return {
        "version": SNAPSHOT_VERSION,
        "custom_accounts": [chart_account_to_dict(account) for account in state.custom_accounts],
        "transactions": [transaction_to_dict(transaction) for transaction in state.transactions],
        "classifications": {
            transaction_id: classification_to_dict(classification)
            for transaction_id, classification in state.classifications.items()
        },
        "journal_entries": [journal_entry_to_dict(entry) for entry in state.journal_entries],
        "ledger_accounts": {
            code: {"account_name": ledger.account_name, "closing_balance": str(ledger.closing_balance)}
            for code, ledger in state.ledger_accounts.items()
        },
        "tax_computations": {
            transaction_id: tax_result_to_dict(result)
            for transaction_id, result in state.tax_computations.items()
        },
        "schedules": [schedule_entry_to_dict(entry) for entry in state.schedules],
        "remitted_schedule_ids": sorted(state.remitted_schedule_ids),
        "last_updated": state.last_updated.isoformat() if state.last_updated else None,
    }


def _upgrade_v1(blob: dict) -> dict:
    """Version 1 stored remittances only as schedule statuses and no classifications."""
    upgraded = dict(blob)
    upgraded["classifications"] = {}
    upgraded["remitted_schedule_ids"] = [
        entry["id"] for entry in blob.get("schedules", []) if entry.get("status") == "remitted"
    ]
    upgraded["version"] = 2
    return upgraded


UPGRADES = {1: _upgrade_v1}


def blob_to_snapshot(blob: dict) -> SnapshotData:
    """Decode a snapshot blob, upgrading older versions.

    Raises:
        PersistenceError: If the blob is from a newer version or malformed
    """
    if not isinstance(blob, dict):
        raise PersistenceError("Snapshot is not a JSON object")
    version = blob.get("version", 1)
    if not isinstance(version, int) or not 1 <= version <= SNAPSHOT_VERSION:
        raise PersistenceError(
            f"Unsupported snapshot version {version} (supported up to {SNAPSHOT_VERSION})"
        )
    while version < SNAPSHOT_VERSION:
        blob = UPGRADES[version](blob)
        version = blob["version"]

    try:
        last_updated = blob.get("last_updated")
        return SnapshotData(
            custom_accounts=[chart_account_from_dict(data) for data in blob.get("custom_accounts", [])],
            transactions=[transaction_from_dict(data) for data in blob.get("transactions", [])],
            classifications={
                transaction_id: classification_from_dict(data)
                for transaction_id, data in blob.get("classifications", {}).items()
            },
            journal_entries=[journal_entry_from_dict(data) for data in blob.get("journal_entries", [])],
            ledger_balances={
                code: _money(data["closing_balance"])
                for code, data in blob.get("ledger_accounts", {}).items()
            },
            tax_computations=[
                tax_result_from_dict(data) for data in blob.get("tax_computations", {}).values()
            ],
            remitted_schedule_ids=set(blob.get("remitted_schedule_ids", [])),
            last_updated=datetime.fromisoformat(last_updated) if last_updated else None,
        )
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise PersistenceError(f"Snapshot is malformed: {e}") from e

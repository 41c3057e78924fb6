"""
Merge / carry-forward reconciler.

A value the user already set on a previous payload always wins over the freshly
computed default; totals are always recomputed from the merged line items and
never carried forward.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

import structlog

from app.core.exceptions import InvalidInputError
from app.core.records import round_money
from app.core.validator import (
    INCONSISTENT_PREVIOUS,
    NEGATIVE_AMOUNT_CLAMPED,
    ValidationIssue,
)

logger = structlog.get_logger()

INCOME_FIELDS = ("gross_rents", "other_income")
CCA_AMOUNT_FIELDS = ("opening_ucc", "additions", "dispositions", "base", "amount", "closing_ucc")


@dataclass
class ReconcileResult:
    payload: dict
    warnings: list[ValidationIssue] = field(default_factory=list)


def _present(mapping: dict | None, key: str) -> bool:
    """A field is carried forward only if the key exists with a non-null value."""
    return bool(mapping) and key in mapping and mapping[key] is not None


def _by_key(items: list[dict] | None) -> dict[str, dict]:
    return {item["key"]: item for item in (items or []) if item.get("key")}


def _key_of(item: dict, kind: str) -> str:
    if not isinstance(item, dict) or not item.get("key"):
        raise InvalidInputError(f"Every {kind} entry needs a key.", details={"field": kind})
    return item["key"]


class _Clamp:
    def __init__(self, warnings: list[ValidationIssue]):
        self.warnings = warnings

    def __call__(self, value, path: str) -> Decimal:
        try:
            amount = Decimal(str(value or 0))
        except InvalidOperation:
            raise InvalidInputError(f"Amount at {path} is not a number.", details={"field": path}) from None
        if not amount.is_finite():
            raise InvalidInputError(f"Amount at {path} is not a number.", details={"field": path})
        if amount < 0:
            self.warnings.append(
                ValidationIssue(
                    level="warning",
                    code=NEGATIVE_AMOUNT_CLAMPED,
                    message=f"Negative amount {amount} at {path} was replaced by 0.",
                    field=path,
                )
            )
            logger.warning("negative_amount_clamped", field=path, amount=str(amount))
            return Decimal("0")
        return round_money(amount)


def _orphaned(kind: str, key: str, warnings: list[ValidationIssue]) -> None:
    warnings.append(
        ValidationIssue(
            level="warning",
            code=INCONSISTENT_PREVIOUS,
            message=f"Previous {kind} '{key}' no longer exists on this form; its value was dropped.",
            field=f"{kind}.{key}",
        )
    )
    logger.warning("previous_bucket_orphaned", kind=kind, key=key)


def reconcile(proposed: dict, previous: dict | None = None) -> ReconcileResult:
    """
    Merge a proposed payload with a previously persisted one.

    Metadata fields, income figures, expense buckets and CCA line fields keep
    the previous value when present, else take the proposed default. Called
    without a previous payload it only clamps negatives and recomputes totals.
    """
    warnings: list[ValidationIssue] = []
    clamp = _Clamp(warnings)
    previous = previous or {}

    # Metadata
    prev_meta = _by_key(previous.get("metadata"))
    metadata = []
    for proposed_field in proposed.get("metadata", []):
        merged = dict(proposed_field)
        prev_field = prev_meta.get(_key_of(proposed_field, "metadata"))
        if proposed_field.get("carry_forward", True) and _present(prev_field, "value"):
            merged["value"] = prev_field["value"]
        metadata.append(merged)
    proposed_meta_keys = {f["key"] for f in proposed.get("metadata", [])}
    for key in prev_meta:
        if key not in proposed_meta_keys:
            _orphaned("metadata", key, warnings)

    # Income
    prev_income = previous.get("income") or {}
    income = {}
    for name in INCOME_FIELDS:
        source = prev_income if _present(prev_income, name) else proposed.get("income", {})
        income[name] = clamp(source.get(name), f"income.{name}")
    total_income = round_money(income["gross_rents"] + income["other_income"])

    # Expense buckets
    prev_expenses = _by_key(previous.get("expenses"))
    expenses = []
    for line in proposed.get("expenses", []):
        merged = dict(line)
        prev_line = prev_expenses.get(_key_of(line, "expenses"))
        value = prev_line["amount"] if _present(prev_line, "amount") else line.get("amount")
        merged["amount"] = float(clamp(value, f"expenses.{line['key']}"))
        expenses.append(merged)
    proposed_bucket_keys = {line["key"] for line in proposed.get("expenses", [])}
    for key in prev_expenses:
        if key not in proposed_bucket_keys:
            _orphaned("expenses", key, warnings)

    # CCA lines (previous-only lines are user entries and stay)
    cca = _merge_cca(proposed.get("cca"), previous.get("cca"), clamp)

    total_expenses = round_money(sum((Decimal(str(line["amount"])) for line in expenses), Decimal("0")))
    payload = {
        "metadata": metadata,
        "income": {
            "gross_rents": float(income["gross_rents"]),
            "other_income": float(income["other_income"]),
            "total_income": float(total_income),
        },
        "income_labels": dict(proposed.get("income_labels") or previous.get("income_labels") or {}),
        "expenses": expenses,
        "totals": {
            "total_expenses": float(total_expenses),
            "net_income": float(round_money(total_income - total_expenses)),
        },
    }
    if cca is not None:
        payload["cca"] = cca
    return ReconcileResult(payload=payload, warnings=warnings)


def _merge_cca(proposed: list[dict] | None, previous: list[dict] | None, clamp: _Clamp) -> list[dict] | None:
    if proposed is None and previous is None:
        return None

    prev_lines = _by_key(previous)
    merged_lines = []
    seen = set()
    for line in proposed or []:
        merged = dict(line)
        prev_line = prev_lines.get(_key_of(line, "cca"), {})
        for name, value in prev_line.items():
            if value is not None:
                merged[name] = value
        merged_lines.append(merged)
        seen.add(line["key"])
    for key, line in prev_lines.items():
        if key not in seen:
            merged_lines.append(dict(line))

    for line in merged_lines:
        for name in CCA_AMOUNT_FIELDS:
            if name in line and line[name] is not None:
                line[name] = float(clamp(line[name], f"cca.{line['key']}.{name}"))
    return merged_lines

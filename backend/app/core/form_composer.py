"""
Rental tax form composer.
Maps computed rental figures onto the line items of a jurisdiction form.

Forms covered (definitions in app/tax_forms/*.yaml):
  T776:  Statement of Real Estate Rentals (federal)
  TP128: Revenus et dépenses de location d'un bien immeuble (Québec)

The composer only proposes computed defaults; carrying previous values
forward is the reconciler's job.
"""
from dataclasses import dataclass, field
from decimal import Decimal

from app.core.aggregation import ComputedData, ExpenseLine
from app.core.records import PropertyRecord, round_money
from app.utils.form_loader import load_form_definition


@dataclass(frozen=True)
class ExpenseBucket:
    key: str
    label: str
    line: str | None = None
    matchers: tuple[str, ...] = ()
    fallback: bool = False

    def matches(self, line: ExpenseLine) -> bool:
        haystacks = [(line.category or "").lower(), (line.label or "").lower()]
        return any(m in h for m in self.matchers for h in haystacks)


@dataclass(frozen=True)
class MetadataFieldSpec:
    key: str
    label: str
    type: str = "text"
    source: str | None = None
    carry_forward: bool = True


@dataclass(frozen=True)
class FormDefinition:
    form_type: str
    title: str
    buckets: tuple[ExpenseBucket, ...]
    metadata: tuple[MetadataFieldSpec, ...] = ()
    income_labels: dict = field(default_factory=dict)
    cca_label: str = ""

    @property
    def fallback(self) -> ExpenseBucket:
        return next(b for b in self.buckets if b.fallback)

    @classmethod
    def from_dict(cls, data: dict) -> "FormDefinition":
        buckets = tuple(
            ExpenseBucket(
                key=b["key"],
                label=b["label"],
                line=b.get("line"),
                matchers=tuple(m.lower() for m in b.get("matchers", [])),
                fallback=bool(b.get("fallback", False)),
            )
            for b in data.get("buckets", [])
        )
        fallbacks = [b.key for b in buckets if b.fallback]
        if len(fallbacks) != 1:
            raise ValueError(
                f"Form {data.get('form_type')} must define exactly one fallback bucket, got {fallbacks}."
            )
        return cls(
            form_type=data["form_type"],
            title=data.get("title", data["form_type"]),
            buckets=buckets,
            metadata=tuple(MetadataFieldSpec(**m) for m in data.get("metadata", [])),
            income_labels=dict(data.get("income_labels", {})),
            cca_label=data.get("cca_label", ""),
        )


def get_form_definition(form_type: str) -> FormDefinition:
    return FormDefinition.from_dict(load_form_definition(form_type))


def categorize(line: ExpenseLine, buckets: tuple[ExpenseBucket, ...]) -> ExpenseBucket:
    """First bucket whose matchers hit the line's category or label, else the fallback."""
    fallback = None
    for bucket in buckets:
        if bucket.fallback:
            fallback = bucket
            continue
        if bucket.matches(line):
            return bucket
    return fallback


def _metadata_value(spec: MetadataFieldSpec, prop: PropertyRecord | None, tax_year: int):
    if spec.source == "tax_year":
        return tax_year
    if spec.source and spec.source.startswith("property.") and prop is not None:
        value = getattr(prop, spec.source.split(".", 1)[1], None)
        if isinstance(value, Decimal):
            return float(value)
        return value
    return None


def compose(
    form_type: str,
    computed: ComputedData,
    prop: PropertyRecord | None,
    tax_year: int,
) -> dict:
    """Build the proposed form payload (computed defaults only)."""
    definition = get_form_definition(form_type)

    amounts: dict[str, Decimal] = {b.key: Decimal("0") for b in definition.buckets}
    for line in computed.expenses:
        amounts[categorize(line, definition.buckets).key] += line.amount

    expenses = [
        {
            "key": b.key,
            "label": b.label,
            "line": b.line,
            "amount": float(round_money(amounts[b.key])),
        }
        for b in definition.buckets
    ]
    metadata = [
        {
            "key": spec.key,
            "label": spec.label,
            "type": spec.type,
            "value": _metadata_value(spec, prop, tax_year),
            "carry_forward": spec.carry_forward,
        }
        for spec in definition.metadata
    ]

    total_income = computed.gross_rents + computed.other_income
    total_expenses = sum(amounts.values(), Decimal("0"))
    return {
        "metadata": metadata,
        "income": {
            "gross_rents": float(round_money(computed.gross_rents)),
            "other_income": float(round_money(computed.other_income)),
            "total_income": float(round_money(total_income)),
        },
        "income_labels": dict(definition.income_labels),
        "expenses": expenses,
        "cca": [dict(line) for line in computed.cca_details],
        "totals": {
            "total_expenses": float(round_money(total_expenses)),
            "net_income": float(round_money(total_income - total_expenses)),
        },
    }

"""
Diagnostics for rental tax statements.
Non-fatal issues are collected, never raised, so the caller decides what to show.
"""
from dataclasses import asdict, dataclass, field
from decimal import Decimal

NEGATIVE_AMOUNT_CLAMPED = "NEGATIVE_AMOUNT_CLAMPED"
INCONSISTENT_PREVIOUS = "INCONSISTENT_PREVIOUS"


@dataclass
class ValidationIssue:
    level: str  # 'error' | 'warning' | 'info'
    code: str
    message: str
    field: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ValidationResult:
    issues: list[ValidationIssue] = field(default_factory=list)

    def add(self, level: str, code: str, message: str, field: str | None = None) -> None:
        self.issues.append(ValidationIssue(level=level, code=code, message=message, field=field))


def review_statement(payload: dict, computed: dict) -> ValidationResult:
    """
    Compare a declared payload with the figures computed from source records
    and flag what deserves a second look.
    """
    result = ValidationResult()
    income = payload.get("income", {})
    totals = payload.get("totals", {})

    # 1. Declared figures drifting from source records (tolerance ±1 $)
    comparisons = [
        ("income.total_income", "Total income", income.get("total_income"), computed.get("total_income")),
        ("totals.total_expenses", "Total expenses", totals.get("total_expenses"), computed.get("total_expenses")),
        ("totals.net_income", "Net income", totals.get("net_income"), computed.get("net_income")),
    ]
    for path, label, declared, expected in comparisons:
        if declared is None or expected is None:
            continue
        delta = Decimal(str(declared)) - Decimal(str(expected))
        if abs(delta) > Decimal("1"):
            result.add(
                "info",
                "DECLARED_DIFFERS_FROM_COMPUTED",
                f"{label} declared ({declared:,.2f} $) differs from computed ({expected:,.2f} $) by {delta:+,.2f} $.",
                field=path,
            )

    # 2. Expenses > 300 % of income
    total_income = Decimal(str(income.get("total_income", 0) or 0))
    total_expenses = Decimal(str(totals.get("total_expenses", 0) or 0))
    if total_income > 0 and total_expenses / total_income > Decimal("3"):
        result.add(
            "warning",
            "EXPENSES_HIGH_RATIO",
            f"Expenses ({total_expenses:,.2f} $) exceed 300 % of rental income. "
            "Check that no expense is entered twice.",
            field="expenses",
        )

    # 3. No rent at all
    if Decimal(str(income.get("gross_rents", 0) or 0)) == 0:
        result.add(
            "warning",
            "NO_GROSS_RENTS",
            "No gross rents for this year. Revenue labels must contain 'rent' or 'loyer' to count as rent.",
            field="income.gross_rents",
        )

    return result

"""
Aggregation pass: folds the source records of one or more properties into the
computed rental income / expense figures of one calendar tax year.

Amounts are accumulated in full precision and rounded once, when the
ComputedData is exposed through to_dict().
"""
from dataclasses import dataclass, field
from decimal import Decimal

from app.core.amortization import build_schedule
from app.core.depreciation import compute_cca
from app.core.exceptions import NotFoundError
from app.core.proration import prorated_amount
from app.core.records import PropertyRecord, round_money, to_decimal

RENT_KEYWORDS = ("loyer", "rent")

MORTGAGE_INTEREST_KEY = "expense-mortgage-interest"
CCA_KEY = "expense-cca"


@dataclass
class ExpenseLine:
    key: str
    label: str
    amount: Decimal
    category: str | None = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "category": self.category,
            "amount": float(round_money(self.amount)),
        }


@dataclass
class IncomeLine:
    key: str
    label: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {"key": self.key, "label": self.label, "amount": float(round_money(self.amount))}


@dataclass
class ComputedData:
    """Computed rental figures for one scope (property or portfolio) / one tax year."""

    tax_year: int
    gross_rents: Decimal = Decimal("0")
    other_income: Decimal = Decimal("0")
    mortgage_interest: Decimal = Decimal("0")
    capital_cost_allowance: Decimal = Decimal("0")
    expenses: list[ExpenseLine] = field(default_factory=list)
    income_details: list[IncomeLine] = field(default_factory=list)
    cca_details: list[dict] = field(default_factory=list)

    @property
    def total_income(self) -> Decimal:
        return self.gross_rents + self.other_income

    @property
    def total_expenses(self) -> Decimal:
        return sum((line.amount for line in self.expenses), Decimal("0"))

    @property
    def net_income(self) -> Decimal:
        return self.total_income - self.total_expenses

    def to_dict(self) -> dict:
        return {
            "gross_rents": float(round_money(self.gross_rents)),
            "other_income": float(round_money(self.other_income)),
            "total_income": float(round_money(self.total_income)),
            "expenses": [line.to_dict() for line in self.expenses],
            "total_expenses": float(round_money(self.total_expenses)),
            "net_income": float(round_money(self.net_income)),
            "mortgage_interest": float(round_money(self.mortgage_interest)),
            "capital_cost_allowance": float(round_money(self.capital_cost_allowance)),
            "income_details": [line.to_dict() for line in self.income_details],
            "cca_details": [dict(line) for line in self.cca_details],
        }


def is_rent(label: str | None) -> bool:
    normalized = (label or "").lower()
    return any(keyword in normalized for keyword in RENT_KEYWORDS)


def aggregate(properties: list[PropertyRecord], tax_year: int) -> ComputedData:
    """
    Compute rental income and expenses for tax_year over the given properties.

    CCA is computed property by property, each against that property's own
    net income before CCA.
    """
    if not properties:
        raise NotFoundError("No property matches the requested scope.", details={"tax_year": tax_year})

    computed = ComputedData(tax_year=tax_year)
    expense_lines: dict[str, ExpenseLine] = {}
    multi = len(properties) > 1

    for prop in properties:
        income = Decimal("0")
        own_expenses = Decimal("0")

        for revenue in prop.revenues:
            annual = prorated_amount(
                to_decimal(revenue.amount), revenue.frequency,
                revenue.start_date, revenue.end_date, tax_year,
            )
            if annual == 0:
                continue
            if is_rent(revenue.label):
                computed.gross_rents += annual
            else:
                computed.other_income += annual
            income += annual
            computed.income_details.append(
                IncomeLine(key=f"revenue-{revenue.id}", label=revenue.label or "Revenue", amount=annual)
            )

        for expense in prop.expenses:
            annual = prorated_amount(
                to_decimal(expense.amount), expense.frequency,
                expense.start_date, expense.end_date, tax_year,
            )
            if annual == 0:
                continue
            key = f"expense-{expense.category or 'other'}-{expense.id}"
            expense_lines[key] = ExpenseLine(
                key=key,
                label=expense.label or expense.category or "Expense",
                amount=annual,
                category=expense.category,
            )
            own_expenses += annual

        for invoice in prop.invoices:
            if invoice.invoice_date is None or invoice.invoice_date.year != tax_year:
                continue
            total = to_decimal(invoice.base_amount) + to_decimal(invoice.tax1) + to_decimal(invoice.tax2)
            if total == 0:
                continue
            key = f"invoice-{invoice.id}"
            expense_lines[key] = ExpenseLine(
                key=key,
                label=invoice.description or invoice.supplier or "Invoice",
                amount=total,
                category=invoice.category,
            )
            own_expenses += total

        interest = sum(
            (build_schedule(m).interest_for_year(tax_year) for m in prop.mortgages),
            Decimal("0"),
        )
        computed.mortgage_interest += interest

        net_before_cca = income - own_expenses - interest
        cca_key = f"cca-{prop.id}-{prop.depreciation.class_code}" if multi and prop.depreciation else None
        cca = compute_cca(prop.depreciation, net_before_cca, key=cca_key, property_id=prop.id)
        computed.capital_cost_allowance += cca.amount
        if cca.detail_line is not None:
            computed.cca_details.append(cca.detail_line)

    if computed.mortgage_interest > 0:
        expense_lines[MORTGAGE_INTEREST_KEY] = ExpenseLine(
            key=MORTGAGE_INTEREST_KEY,
            label="Mortgage interest",
            amount=computed.mortgage_interest,
            category="interest",
        )
    if computed.capital_cost_allowance > 0:
        expense_lines[CCA_KEY] = ExpenseLine(
            key=CCA_KEY,
            label="Capital cost allowance (CCA)",
            amount=computed.capital_cost_allowance,
            category="cca",
        )

    computed.expenses = list(expense_lines.values())
    computed.income_details.sort(key=lambda line: (line.label, line.key))
    return computed

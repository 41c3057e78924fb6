"""
Mortgage amortization: fixed annuity payment and period-by-period
interest / principal breakdown, aggregated per calendar year.

Interest is rounded to the cent every period, like a lender statement; the
last period absorbs whatever balance remains, so scheduled principal always
sums exactly to the amount borrowed.
"""
import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from app.core.exceptions import InvalidInputError
from app.core.records import MortgageTerms, round_money

# payment_frequency -> (months, days) between two due dates
_PERIOD_STEPS = {
    1: (12, 0),
    2: (6, 0),
    4: (3, 0),
    12: (1, 0),
    24: (0, 15),
    26: (0, 14),
    52: (0, 7),
}


@dataclass
class SchedulePeriod:
    index: int
    due_date: date
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal


@dataclass
class AnnualBreakdown:
    year: int
    total_interest: Decimal
    total_principal: Decimal
    ending_balance: Decimal


@dataclass
class AmortizationSchedule:
    payment_amount: Decimal
    term_periods: int
    periods: list[SchedulePeriod] = field(default_factory=list)
    annual_breakdown: list[AnnualBreakdown] = field(default_factory=list)

    @property
    def total_interest(self) -> Decimal:
        return sum((p.interest for p in self.periods), Decimal("0"))

    @property
    def total_principal(self) -> Decimal:
        return sum((p.principal for p in self.periods), Decimal("0"))

    @property
    def term_summary(self) -> dict:
        window = self.periods[: self.term_periods]
        return {
            "periods": len(window),
            "end_date": window[-1].due_date if window else None,
            "total_interest": sum((p.interest for p in window), Decimal("0")),
            "total_principal": sum((p.principal for p in window), Decimal("0")),
            "balance_remaining": window[-1].balance if window else Decimal("0"),
        }

    def interest_for_year(self, year: int) -> Decimal:
        for entry in self.annual_breakdown:
            if entry.year == year:
                return entry.total_interest
        return Decimal("0")

    def to_dict(self) -> dict:
        term = self.term_summary
        return {
            "payment_amount": float(self.payment_amount),
            "total_periods": len(self.periods),
            "payoff_date": self.periods[-1].due_date.isoformat() if self.periods else None,
            "total_interest": float(round_money(self.total_interest)),
            "total_principal": float(round_money(self.total_principal)),
            "term_summary": {
                "periods": term["periods"],
                "end_date": term["end_date"].isoformat() if term["end_date"] else None,
                "total_interest": float(round_money(term["total_interest"])),
                "total_principal": float(round_money(term["total_principal"])),
                "balance_remaining": float(round_money(term["balance_remaining"])),
            },
            "annual_breakdown": [
                {
                    "year": a.year,
                    "total_interest": float(a.total_interest),
                    "total_principal": float(a.total_principal),
                    "ending_balance": float(a.ending_balance),
                }
                for a in self.annual_breakdown
            ],
            "periods": [
                {
                    "index": p.index,
                    "due_date": p.due_date.isoformat(),
                    "payment": float(p.payment),
                    "interest": float(p.interest),
                    "principal": float(p.principal),
                    "balance": float(p.balance),
                }
                for p in self.periods
            ],
        }


def _count_periods(months: int, payment_frequency: int) -> int:
    """Whole number of payments in `months`; a positive duration always has at least one."""
    periods = Decimal(months * payment_frequency) / Decimal("12")
    return max(1, int(periods.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def due_date(start: date, payment_frequency: int, index: int) -> date:
    """Due date of the index-th period (0-based) counted from start."""
    months, days = _PERIOD_STEPS.get(
        payment_frequency, (0, round(365 / max(1, payment_frequency)))
    )
    if months:
        return _add_months(start, months * index)
    return start + timedelta(days=days * index)


def payment(
    principal: Decimal,
    annual_rate: Decimal,
    amortization_months: int,
    payment_frequency: int = 12,
) -> Decimal:
    """
    Fixed periodic payment that repays principal over amortization_months.
    Standard annuity formula; straight division when the rate is zero.
    """
    principal = Decimal(str(principal))
    annual_rate = Decimal(str(annual_rate))
    if principal <= 0:
        raise InvalidInputError("Mortgage principal must be positive.", details={"principal": str(principal)})
    if amortization_months <= 0 or payment_frequency <= 0:
        raise InvalidInputError(
            "Amortization length and payment frequency must be positive.",
            details={"amortization_months": amortization_months, "payment_frequency": payment_frequency},
        )

    periods = _count_periods(amortization_months, payment_frequency)
    rate = annual_rate / payment_frequency
    if rate == 0:
        return round_money(principal / periods)

    denominator = 1 - (1 + rate) ** -periods
    return round_money(principal * rate / denominator)


def build_schedule(mortgage: MortgageTerms) -> AmortizationSchedule:
    """
    Build the full amortization horizon. The annual breakdown only covers the
    term window (the first min(term, amortization) months), which is what a
    tax year sees for the current contract.
    """
    principal = Decimal(str(mortgage.principal))
    annual_rate = Decimal(str(mortgage.annual_rate))
    if not Decimal("0") <= annual_rate <= Decimal("1"):
        raise InvalidInputError(
            "Annual rate must be between 0 and 1.", details={"annual_rate": str(annual_rate)}
        )
    if mortgage.term_months <= 0:
        raise InvalidInputError("Mortgage term must be positive.", details={"term_months": mortgage.term_months})

    frequency = mortgage.payment_frequency
    computed_payment = payment(principal, annual_rate, mortgage.amortization_months, frequency)
    explicit = Decimal(str(mortgage.payment_amount)) if mortgage.payment_amount else Decimal("0")
    scheduled_payment = round_money(explicit) if explicit > 0 else computed_payment

    total_periods = _count_periods(mortgage.amortization_months, frequency)
    term_periods = _count_periods(min(mortgage.term_months, mortgage.amortization_months), frequency)
    rate = annual_rate / frequency

    periods: list[SchedulePeriod] = []
    balance = principal
    for index in range(1, total_periods + 1):
        interest = round_money(balance * rate)
        if index == total_periods:
            principal_part = balance
        else:
            principal_part = min(max(Decimal("0"), scheduled_payment - interest), balance)
        balance -= principal_part
        periods.append(
            SchedulePeriod(
                index=index,
                due_date=due_date(mortgage.start_date, frequency, index - 1),
                payment=interest + principal_part,
                interest=interest,
                principal=principal_part,
                balance=balance,
            )
        )
        if balance == 0:
            break

    schedule = AmortizationSchedule(
        payment_amount=scheduled_payment,
        term_periods=min(term_periods, len(periods)),
        periods=periods,
    )
    schedule.annual_breakdown = _annual_breakdown(periods[: schedule.term_periods])
    return schedule


def _annual_breakdown(periods: list[SchedulePeriod]) -> list[AnnualBreakdown]:
    by_year: dict[int, AnnualBreakdown] = {}
    for p in periods:
        entry = by_year.setdefault(
            p.due_date.year,
            AnnualBreakdown(p.due_date.year, Decimal("0"), Decimal("0"), p.balance),
        )
        entry.total_interest += p.interest
        entry.total_principal += p.principal
        entry.ending_balance = p.balance
    return [by_year[y] for y in sorted(by_year)]

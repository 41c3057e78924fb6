"""Tests for the mortgage amortization schedule builder."""
from datetime import date
from decimal import Decimal

import pytest

from app.core.amortization import build_schedule, due_date, payment
from app.core.exceptions import InvalidInputError
from app.core.records import MortgageTerms


def _mortgage(**overrides) -> MortgageTerms:
    data = {
        "principal": Decimal("300000"),
        "annual_rate": Decimal("0.05"),
        "amortization_months": 300,
        "term_months": 60,
        "start_date": date(2025, 1, 1),
    }
    data.update(overrides)
    return MortgageTerms(**data)


class TestPayment:
    def test_standard_monthly_annuity(self):
        """300 000 $ at 5 % over 25 years, monthly → about 1 753.77 $."""
        amount = payment(Decimal("300000"), Decimal("0.05"), 300)
        assert abs(amount - Decimal("1753.77")) <= Decimal("0.01")

    def test_rounded_to_cents(self):
        amount = payment(Decimal("250000"), Decimal("0.0449"), 300)
        assert amount == amount.quantize(Decimal("0.01"))

    def test_zero_rate_is_straight_division(self):
        assert payment(Decimal("120000"), Decimal("0"), 120) == Decimal("1000.00")

    def test_biweekly_payment_smaller_than_monthly(self):
        monthly = payment(Decimal("300000"), Decimal("0.05"), 300, 12)
        biweekly = payment(Decimal("300000"), Decimal("0.05"), 300, 26)
        assert biweekly < monthly / 2

    @pytest.mark.parametrize("principal", [Decimal("0"), Decimal("-1000")])
    def test_non_positive_principal_rejected(self, principal):
        with pytest.raises(InvalidInputError):
            payment(principal, Decimal("0.05"), 300)

    def test_non_positive_amortization_rejected(self):
        with pytest.raises(InvalidInputError):
            payment(Decimal("100000"), Decimal("0.05"), 0)


class TestBuildSchedule:
    def test_principal_repaid_exactly(self):
        schedule = build_schedule(_mortgage())
        assert schedule.total_principal == Decimal("300000")
        assert schedule.periods[-1].balance == Decimal("0")
        assert len(schedule.periods) == 300

    def test_first_period_interest(self):
        schedule = build_schedule(_mortgage())
        first = schedule.periods[0]
        assert first.interest == Decimal("1250.00")
        assert first.principal == schedule.payment_amount - Decimal("1250.00")
        assert first.due_date == date(2025, 1, 1)

    def test_interest_rounded_every_period(self):
        schedule = build_schedule(_mortgage(annual_rate=Decimal("0.0437")))
        for p in schedule.periods:
            assert p.interest == p.interest.quantize(Decimal("0.01"))

    def test_annual_breakdown_limited_to_term(self):
        schedule = build_schedule(_mortgage(term_months=60))
        years = [a.year for a in schedule.annual_breakdown]
        assert years == [2025, 2026, 2027, 2028, 2029]
        assert schedule.interest_for_year(2030) == Decimal("0")

    def test_annual_breakdown_matches_term_summary(self):
        schedule = build_schedule(_mortgage())
        term = schedule.term_summary
        assert sum(a.total_interest for a in schedule.annual_breakdown) == term["total_interest"]
        assert sum(a.total_principal for a in schedule.annual_breakdown) == term["total_principal"]
        assert term["periods"] == 60
        assert term["balance_remaining"] == schedule.annual_breakdown[-1].ending_balance

    def test_interest_declines_year_over_year(self):
        schedule = build_schedule(_mortgage())
        interests = [a.total_interest for a in schedule.annual_breakdown]
        assert interests == sorted(interests, reverse=True)

    def test_mid_year_start(self):
        schedule = build_schedule(_mortgage(start_date=date(2025, 7, 15)))
        first_year = schedule.annual_breakdown[0]
        assert first_year.year == 2025
        # July → December
        assert len([p for p in schedule.periods[:60] if p.due_date.year == 2025]) == 6
        assert first_year.total_interest > 0

    def test_term_longer_than_amortization_capped(self):
        schedule = build_schedule(_mortgage(amortization_months=24, term_months=60))
        assert schedule.term_periods == 24
        assert schedule.term_summary["balance_remaining"] == Decimal("0")

    def test_explicit_payment_amount_wins(self):
        schedule = build_schedule(_mortgage(payment_amount=Decimal("2500")))
        assert schedule.payment_amount == Decimal("2500.00")
        assert schedule.periods[0].principal == Decimal("1250.00")
        # Paid off well before 300 periods
        assert len(schedule.periods) < 300
        assert schedule.total_principal == Decimal("300000")

    def test_zero_rate_schedule(self):
        schedule = build_schedule(
            _mortgage(principal=Decimal("12000"), annual_rate=Decimal("0"), amortization_months=12, term_months=12)
        )
        assert schedule.total_interest == Decimal("0")
        assert all(p.principal == Decimal("1000.00") for p in schedule.periods)

    def test_biweekly_periods(self):
        schedule = build_schedule(_mortgage(payment_frequency=26))
        assert len(schedule.periods) == 650
        assert schedule.periods[1].due_date == date(2025, 1, 15)

    def test_short_annual_loan_has_one_period(self):
        """5 months paid once a year still makes one payment, not zero."""
        schedule = build_schedule(
            _mortgage(principal=Decimal("10000"), amortization_months=5, term_months=5, payment_frequency=1)
        )
        assert len(schedule.periods) == 1
        assert schedule.payment_amount == Decimal("10500.00")
        assert schedule.periods[0].interest == Decimal("500.00")
        assert schedule.total_principal == Decimal("10000")
        assert schedule.interest_for_year(2025) == Decimal("500.00")

    def test_short_zero_rate_loan(self):
        assert payment(Decimal("9000"), Decimal("0"), 2, 4) == Decimal("9000.00")

    def test_rate_out_of_range(self):
        with pytest.raises(InvalidInputError):
            build_schedule(_mortgage(annual_rate=Decimal("5")))

    def test_non_positive_term(self):
        with pytest.raises(InvalidInputError):
            build_schedule(_mortgage(term_months=0))

    def test_to_dict(self):
        data = build_schedule(_mortgage()).to_dict()
        assert data["total_periods"] == 300
        assert data["total_principal"] == 300000.0
        assert data["term_summary"]["periods"] == 60
        assert data["term_summary"]["end_date"] == "2029-12-01"
        assert len(data["annual_breakdown"]) == 5
        assert data["periods"][0]["interest"] == 1250.0


class TestDueDate:
    def test_monthly_clamps_to_month_end(self):
        assert due_date(date(2025, 1, 31), 12, 1) == date(2025, 2, 28)

    def test_quarterly(self):
        assert due_date(date(2025, 1, 15), 4, 3) == date(2025, 10, 15)

    def test_weekly(self):
        assert due_date(date(2025, 1, 1), 52, 2) == date(2025, 1, 15)

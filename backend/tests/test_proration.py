"""Tests for temporal proration of recurring amounts."""
from datetime import date
from decimal import Decimal

from app.core.proration import occurrences, prorated_amount
from app.core.records import Frequency


class TestOccurrences:
    def test_monthly_open_bounds_covers_whole_year(self):
        assert occurrences(Frequency.MONTHLY, None, None, 2025) == 12

    def test_monthly_starting_in_april(self):
        assert occurrences(Frequency.MONTHLY, date(2025, 4, 1), None, 2025) == 9

    def test_monthly_clipped_to_year_on_both_sides(self):
        """Lease from Nov 2024 to Feb 2026 → 12 months in 2025."""
        assert occurrences(Frequency.MONTHLY, date(2024, 11, 1), date(2026, 2, 28), 2025) == 12

    def test_monthly_ending_mid_year(self):
        assert occurrences(Frequency.MONTHLY, date(2020, 1, 1), date(2025, 6, 30), 2025) == 6

    def test_weekly_full_year(self):
        # 364 days between Jan 1 and Dec 31 → 52 full weeks + the first occurrence
        assert occurrences(Frequency.WEEKLY, None, None, 2025) == 53

    def test_weekly_partial(self):
        assert occurrences(Frequency.WEEKLY, date(2025, 12, 1), None, 2025) == 5

    def test_quarterly_full_year(self):
        assert occurrences(Frequency.QUARTERLY, None, None, 2025) == 4

    def test_quarterly_short_window_counts_at_least_once(self):
        assert occurrences(Frequency.QUARTERLY, date(2025, 11, 15), None, 2025) == 1

    def test_annual_counts_once_when_overlapping(self):
        assert occurrences(Frequency.ANNUAL, date(2019, 5, 1), None, 2025) == 1

    def test_one_time_in_its_year(self):
        assert occurrences(Frequency.ONE_TIME, date(2025, 3, 1), None, 2025) == 1

    def test_one_time_not_repeated_the_following_year(self):
        assert occurrences(Frequency.ONE_TIME, date(2025, 3, 1), None, 2026) == 0

    def test_one_time_without_date_belongs_to_target_year(self):
        assert occurrences(Frequency.ONE_TIME, None, None, 2025) == 1

    def test_range_before_year(self):
        assert occurrences(Frequency.MONTHLY, date(2023, 1, 1), date(2024, 12, 31), 2025) == 0

    def test_range_after_year(self):
        assert occurrences(Frequency.MONTHLY, date(2026, 1, 1), None, 2025) == 0

    def test_end_before_start(self):
        assert occurrences(Frequency.MONTHLY, date(2025, 6, 1), date(2025, 3, 1), 2025) == 0


class TestProratedAmount:
    def test_monthly_rent(self):
        amount = prorated_amount(Decimal("1250"), Frequency.MONTHLY, date(2025, 7, 1), None, 2025)
        assert amount == Decimal("7500")

    def test_zero_amount(self):
        assert prorated_amount(Decimal("0"), Frequency.MONTHLY, None, None, 2025) == Decimal("0")

    def test_full_precision_kept(self):
        amount = prorated_amount(Decimal("33.333"), Frequency.MONTHLY, None, None, 2025)
        assert amount == Decimal("399.996")


class TestFrequencyParse:
    def test_known_values(self):
        assert Frequency.parse("monthly") is Frequency.MONTHLY
        assert Frequency.parse("QUARTERLY") is Frequency.QUARTERLY

    def test_legacy_codes(self):
        assert Frequency.parse("MENSUEL") is Frequency.MONTHLY
        assert Frequency.parse("hebdomadaire") is Frequency.WEEKLY
        assert Frequency.parse("PONCTUEL") is Frequency.ONE_TIME

    def test_unknown_falls_back_to_one_time(self):
        assert Frequency.parse("biweekly-ish") is Frequency.ONE_TIME
        assert Frequency.parse(None) is Frequency.ONE_TIME

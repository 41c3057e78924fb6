"""Tests for the capital cost allowance (CCA) calculator."""
from decimal import Decimal

import pytest

from app.core.depreciation import cca_base, compute_cca
from app.core.records import DepreciationSetting


def _setting(**overrides) -> DepreciationSetting:
    data = {
        "class_code": "1",
        "cca_rate_percent": Decimal("4"),
        "opening_ucc": Decimal("200000"),
    }
    data.update(overrides)
    return DepreciationSetting(**data)


class TestCcaBase:
    def test_half_year_rule_on_additions(self):
        assert cca_base(Decimal("0"), Decimal("100000"), Decimal("0")) == Decimal("50000")

    def test_dispositions_reduce_base(self):
        assert cca_base(Decimal("100000"), Decimal("0"), Decimal("30000")) == Decimal("70000")

    def test_never_negative(self):
        assert cca_base(Decimal("1000"), Decimal("0"), Decimal("5000")) == Decimal("0")


class TestComputeCca:
    def test_full_rate_when_income_allows(self):
        """Class 1 at 4 % on 200 000 $ → 8 000 $."""
        result = compute_cca(_setting(), Decimal("20000"))
        assert result.amount == Decimal("8000")
        assert result.closing_balance == Decimal("192000")
        assert result.detail_line["amount"] == 8000.0
        assert result.detail_line["closing_ucc"] == 192000.0

    def test_limited_to_net_income(self):
        """CCA cannot create a rental loss."""
        result = compute_cca(_setting(), Decimal("3000"))
        assert result.amount == Decimal("3000")
        assert result.closing_balance == Decimal("197000")

    def test_no_claim_when_already_at_loss(self):
        result = compute_cca(_setting(), Decimal("-1500"))
        assert result.amount == Decimal("0")
        assert result.closing_balance == Decimal("200000")
        assert result.detail_line is not None
        assert result.detail_line["amount"] == 0.0

    def test_additions_first_year(self):
        result = compute_cca(
            _setting(opening_ucc=Decimal("0"), additions=Decimal("100000")), Decimal("50000")
        )
        assert result.amount == Decimal("2000")
        assert result.closing_balance == Decimal("98000")
        assert result.detail_line["base"] == 50000.0

    def test_no_setting(self):
        result = compute_cca(None, Decimal("10000"))
        assert result.amount == Decimal("0")
        assert result.detail_line is None

    def test_zero_rate_no_detail_line(self):
        result = compute_cca(_setting(class_code="13", cca_rate_percent=Decimal("0")), Decimal("10000"))
        assert result.amount == Decimal("0")
        assert result.closing_balance == Decimal("200000")
        assert result.detail_line is None

    def test_detail_line_fields(self):
        result = compute_cca(
            _setting(description="Duplex"), Decimal("20000"), key="cca-7-1", property_id=7
        )
        line = result.detail_line
        assert line["key"] == "cca-7-1"
        assert line["property_id"] == 7
        assert line["class_code"] == "1"
        assert line["description"] == "Duplex"
        assert line["rate"] == 4.0
        assert line["opening_ucc"] == 200000.0

    def test_default_key_and_description(self):
        line = compute_cca(_setting(class_code="8", cca_rate_percent=Decimal("20")), Decimal("1")).detail_line
        assert line["key"] == "cca-8"
        assert line["description"] == "Class 8"


class TestCcaNeverCreatesLoss:
    @pytest.mark.parametrize("net_income", ["0", "-0.01", "-25000"])
    @pytest.mark.parametrize("rate", ["4", "20", "100"])
    def test_no_claim_without_income(self, net_income, rate):
        setting = _setting(cca_rate_percent=Decimal(rate), additions=Decimal("50000"))
        assert compute_cca(setting, Decimal(net_income)).amount == 0

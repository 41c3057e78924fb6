"""
Capital Cost Allowance (CCA) calculator for rental properties.
Reference: ITA s. 20(1)(a), Reg. 1100(1) half-year rule, Reg. 1100(11) rental property restriction
(CCA cannot create or increase a rental loss).
"""
from dataclasses import dataclass
from decimal import Decimal

from app.core.records import DepreciationSetting, round_money


@dataclass
class CcaResult:
    amount: Decimal
    closing_balance: Decimal
    detail_line: dict | None = None


def cca_base(opening_ucc: Decimal, additions: Decimal, dispositions: Decimal) -> Decimal:
    """UCC eligible this year: only half of the net additions count (half-year rule)."""
    return max(Decimal("0"), opening_ucc + additions / 2 - dispositions)


def compute_cca(
    setting: DepreciationSetting | None,
    net_income_before_cca: Decimal,
    key: str | None = None,
    property_id: int | None = None,
) -> CcaResult:
    """
    Compute the CCA claim for one property / one tax year.

    The claim is the lesser of base × rate and the rental income left before
    CCA, so a property already at a loss claims nothing. Returns a zero amount
    without a detail line when no setting exists or the rate is zero.
    """
    if setting is None:
        return CcaResult(amount=Decimal("0"), closing_balance=Decimal("0"))

    opening = Decimal(str(setting.opening_ucc))
    additions = Decimal(str(setting.additions))
    dispositions = Decimal(str(setting.dispositions))
    rate_pct = Decimal(str(setting.cca_rate_percent))
    undepreciated = max(Decimal("0"), opening + additions - dispositions)

    if rate_pct == 0:
        return CcaResult(amount=Decimal("0"), closing_balance=undepreciated)

    base = cca_base(opening, additions, dispositions)
    max_allowed = base * rate_pct / 100
    amount = min(max_allowed, max(Decimal("0"), Decimal(str(net_income_before_cca))))
    closing = max(Decimal("0"), opening + additions - dispositions - amount)

    detail = {
        "key": key or f"cca-{setting.class_code}",
        "property_id": property_id,
        "class_code": setting.class_code,
        "description": setting.description or f"Class {setting.class_code}",
        "rate": float(rate_pct),
        "opening_ucc": float(round_money(opening)),
        "additions": float(round_money(additions)),
        "dispositions": float(round_money(dispositions)),
        "base": float(round_money(base)),
        "amount": float(round_money(amount)),
        "closing_ucc": float(round_money(closing)),
    }
    return CcaResult(amount=amount, closing_balance=closing, detail_line=detail)

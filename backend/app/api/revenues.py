from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id, get_owned_property_or_404
from app.core.aggregation import is_rent
from app.core.proration import occurrences
from app.core.records import Frequency, round_money, to_decimal
from app.db.database import get_db
from app.models.property import Property
from app.models.revenue import Revenue

router = APIRouter()

VALID_FREQUENCIES = {f.value for f in Frequency}


class RevenueCreate(BaseModel):
    property_id: int
    label: str
    amount: float
    frequency: str = "monthly"
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("amount")
    @classmethod
    def non_negative_amount(cls, v):
        if v < 0:
            raise ValueError("Amount cannot be negative.")
        return v

    @field_validator("frequency")
    @classmethod
    def valid_frequency(cls, v):
        if v not in VALID_FREQUENCIES:
            raise ValueError(f"Invalid frequency. Accepted values: {sorted(VALID_FREQUENCIES)}")
        return v

    @model_validator(mode="after")
    def end_after_start(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date.")
        return self


class RevenueResponse(BaseModel):
    id: int
    property_id: int
    label: str
    amount: float
    frequency: str
    start_date: date | None
    end_date: date | None

    model_config = {"from_attributes": True}


def _get_owned_revenue_or_404(revenue_id: int, user_id: int, db: Session) -> Revenue:
    rev = (
        db.query(Revenue)
        .join(Property)
        .filter(Revenue.id == revenue_id, Property.user_id == user_id)
        .first()
    )
    if not rev:
        raise HTTPException(status_code=404, detail="Revenue not found.")
    return rev


@router.get("/", response_model=list[RevenueResponse])
def list_revenues(
    property_id: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    q = db.query(Revenue).join(Property).filter(Property.user_id == user_id)
    if property_id:
        q = q.filter(Revenue.property_id == property_id)
    return q.order_by(Revenue.id).all()


@router.post("/", response_model=RevenueResponse, status_code=status.HTTP_201_CREATED)
def create_revenue(
    data: RevenueCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    get_owned_property_or_404(data.property_id, user_id, db)
    rev = Revenue(**data.model_dump())
    db.add(rev)
    db.commit()
    db.refresh(rev)
    return rev


@router.put("/{revenue_id}", response_model=RevenueResponse)
def update_revenue(
    revenue_id: int,
    data: RevenueCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    rev = _get_owned_revenue_or_404(revenue_id, user_id, db)
    get_owned_property_or_404(data.property_id, user_id, db)
    for field, value in data.model_dump().items():
        setattr(rev, field, value)
    db.commit()
    db.refresh(rev)
    return rev


@router.delete("/{revenue_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_revenue(
    revenue_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    rev = _get_owned_revenue_or_404(revenue_id, user_id, db)
    db.delete(rev)
    db.commit()


@router.get("/summary/{property_id}/{year}")
def revenue_summary(
    property_id: int,
    year: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    prop = get_owned_property_or_404(property_id, user_id, db)
    lines = []
    gross_rents = Decimal("0")
    other_income = Decimal("0")
    for rev in sorted(prop.revenues, key=lambda r: r.id):
        count = occurrences(Frequency.parse(rev.frequency), rev.start_date, rev.end_date, year)
        annual = to_decimal(rev.amount) * count
        rent = is_rent(rev.label)
        if rent:
            gross_rents += annual
        else:
            other_income += annual
        lines.append({
            "id": rev.id,
            "label": rev.label,
            "frequency": rev.frequency,
            "occurrences": count,
            "annual_amount": float(round_money(annual)),
            "is_rent": rent,
        })
    return {
        "property_id": property_id,
        "year": year,
        "lines": lines,
        "gross_rents": float(round_money(gross_rents)),
        "other_income": float(round_money(other_income)),
        "total": float(round_money(gross_rents + other_income)),
    }

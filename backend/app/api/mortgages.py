from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id, get_owned_property_or_404
from app.core.amortization import build_schedule
from app.core.exceptions import InvalidInputError
from app.db.database import get_db
from app.models.mortgage import Mortgage
from app.models.property import Property
from app.services.rental_tax import mortgage_terms

router = APIRouter()

VALID_PAYMENT_FREQUENCIES = {1, 2, 4, 12, 24, 26, 52}


class MortgageCreate(BaseModel):
    property_id: int
    lender: str | None = None
    principal: float
    rate_annual: float
    amortization_months: int
    term_months: int
    payment_frequency: int = 12
    start_date: date
    payment_amount: float | None = None

    @field_validator("principal")
    @classmethod
    def positive_principal(cls, v):
        if v <= 0:
            raise ValueError("Principal must be greater than 0.")
        return v

    @field_validator("rate_annual")
    @classmethod
    def valid_rate(cls, v):
        if not 0 <= v <= 1:
            raise ValueError("Annual rate is a fraction between 0 and 1 (0.05 == 5 %).")
        return v

    @field_validator("amortization_months", "term_months")
    @classmethod
    def positive_months(cls, v):
        if v <= 0:
            raise ValueError("Durations must be greater than 0 months.")
        return v

    @field_validator("payment_frequency")
    @classmethod
    def valid_frequency(cls, v):
        if v not in VALID_PAYMENT_FREQUENCIES:
            raise ValueError(f"Payment frequency must be one of {sorted(VALID_PAYMENT_FREQUENCIES)}.")
        return v


class MortgageResponse(BaseModel):
    id: int
    property_id: int
    lender: str | None
    principal: float
    rate_annual: float
    amortization_months: int
    term_months: int
    payment_frequency: int
    start_date: date
    payment_amount: float | None

    model_config = {"from_attributes": True}


def _get_owned_mortgage_or_404(mortgage_id: int, user_id: int, db: Session) -> Mortgage:
    mortgage = (
        db.query(Mortgage)
        .join(Property)
        .filter(Mortgage.id == mortgage_id, Property.user_id == user_id)
        .first()
    )
    if not mortgage:
        raise HTTPException(status_code=404, detail="Mortgage not found.")
    return mortgage


@router.get("/", response_model=list[MortgageResponse])
def list_mortgages(
    property_id: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    q = db.query(Mortgage).join(Property).filter(Property.user_id == user_id)
    if property_id:
        q = q.filter(Mortgage.property_id == property_id)
    return q.order_by(Mortgage.id).all()


@router.post("/", response_model=MortgageResponse, status_code=status.HTTP_201_CREATED)
def create_mortgage(
    data: MortgageCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    get_owned_property_or_404(data.property_id, user_id, db)
    mortgage = Mortgage(**data.model_dump())
    db.add(mortgage)
    db.commit()
    db.refresh(mortgage)
    return mortgage


@router.get("/{mortgage_id}/schedule")
def mortgage_schedule(
    mortgage_id: int,
    include_periods: bool = False,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Amortization schedule of a stored mortgage (periods are opt-in, they get long)."""
    mortgage = _get_owned_mortgage_or_404(mortgage_id, user_id, db)
    try:
        schedule = build_schedule(mortgage_terms(mortgage))
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=e.message)
    data = schedule.to_dict()
    if not include_periods:
        data.pop("periods")
    return {"mortgage_id": mortgage.id, **data}


@router.delete("/{mortgage_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mortgage(
    mortgage_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    mortgage = _get_owned_mortgage_or_404(mortgage_id, user_id, db)
    db.delete(mortgage)
    db.commit()

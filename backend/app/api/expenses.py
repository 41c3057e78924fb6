from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id, get_owned_property_or_404
from app.core.proration import prorated_amount
from app.core.records import Frequency, round_money, to_decimal
from app.db.database import get_db
from app.models.expense import Expense
from app.models.property import Property

router = APIRouter()

VALID_FREQUENCIES = {f.value for f in Frequency}


class ExpenseCreate(BaseModel):
    property_id: int
    label: str
    category: str | None = None
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


class ExpenseResponse(BaseModel):
    id: int
    property_id: int
    label: str
    category: str | None
    amount: float
    frequency: str
    start_date: date | None
    end_date: date | None

    model_config = {"from_attributes": True}


def _get_owned_expense_or_404(expense_id: int, user_id: int, db: Session) -> Expense:
    exp = (
        db.query(Expense)
        .join(Property)
        .filter(Expense.id == expense_id, Property.user_id == user_id)
        .first()
    )
    if not exp:
        raise HTTPException(status_code=404, detail="Expense not found.")
    return exp


@router.get("/", response_model=list[ExpenseResponse])
def list_expenses(
    property_id: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    q = db.query(Expense).join(Property).filter(Property.user_id == user_id)
    if property_id:
        q = q.filter(Expense.property_id == property_id)
    return q.order_by(Expense.id).all()


@router.post("/", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense(
    data: ExpenseCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    get_owned_property_or_404(data.property_id, user_id, db)
    exp = Expense(**data.model_dump())
    db.add(exp)
    db.commit()
    db.refresh(exp)
    return exp


@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    data: ExpenseCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    exp = _get_owned_expense_or_404(expense_id, user_id, db)
    get_owned_property_or_404(data.property_id, user_id, db)
    for field, value in data.model_dump().items():
        setattr(exp, field, value)
    db.commit()
    db.refresh(exp)
    return exp


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    exp = _get_owned_expense_or_404(expense_id, user_id, db)
    db.delete(exp)
    db.commit()


@router.get("/summary/{property_id}/{year}")
def expense_summary(
    property_id: int,
    year: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    prop = get_owned_property_or_404(property_id, user_id, db)
    by_category: dict[str, Decimal] = {}
    total = Decimal("0")
    for exp in prop.expenses:
        annual = prorated_amount(
            to_decimal(exp.amount), Frequency.parse(exp.frequency), exp.start_date, exp.end_date, year
        )
        category = exp.category or "other"
        by_category[category] = by_category.get(category, Decimal("0")) + annual
        total += annual
    return {
        "property_id": property_id,
        "year": year,
        "by_category": {k: float(round_money(v)) for k, v in by_category.items()},
        "total": float(round_money(total)),
    }

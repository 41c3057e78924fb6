from datetime import date

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id, get_owned_property_or_404
from app.db.database import get_db
from app.models.property import Property

router = APIRouter()


class PropertyCreate(BaseModel):
    name: str
    address: str | None = None
    acquisition_date: date | None = None
    ownership_pct: float = 100

    @field_validator("acquisition_date")
    @classmethod
    def acquisition_date_not_future(cls, v):
        if v is not None and v > date.today():
            raise ValueError("Acquisition date cannot be in the future.")
        return v

    @field_validator("ownership_pct")
    @classmethod
    def valid_pct(cls, v):
        if not 0 <= v <= 100:
            raise ValueError("Ownership percentage must be between 0 and 100.")
        return v


class PropertyUpdate(BaseModel):
    name: str | None = None
    address: str | None = None
    acquisition_date: date | None = None
    ownership_pct: float | None = None

    @field_validator("ownership_pct")
    @classmethod
    def valid_pct(cls, v):
        if v is not None and not 0 <= v <= 100:
            raise ValueError("Ownership percentage must be between 0 and 100.")
        return v


class PropertyResponse(BaseModel):
    id: int
    name: str
    address: str | None
    acquisition_date: date | None
    ownership_pct: float
    is_active: bool

    model_config = {"from_attributes": True}


@router.get("/", response_model=list[PropertyResponse])
def list_properties(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return (
        db.query(Property)
        .filter(Property.user_id == user_id, Property.is_active)
        .order_by(Property.id)
        .all()
    )


@router.post("/", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
def create_property(
    data: PropertyCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    prop = Property(user_id=user_id, **data.model_dump())
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return prop


@router.get("/{property_id}", response_model=PropertyResponse)
def get_property(
    property_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return get_owned_property_or_404(property_id, user_id, db)


@router.put("/{property_id}", response_model=PropertyResponse)
def update_property(
    property_id: int,
    data: PropertyUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    prop = get_owned_property_or_404(property_id, user_id, db)
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(prop, field, value)
    db.commit()
    db.refresh(prop)
    return prop


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_property(
    property_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    prop = get_owned_property_or_404(property_id, user_id, db)
    prop.is_active = False
    db.commit()

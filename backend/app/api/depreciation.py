from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id, get_owned_property_or_404
from app.core.depreciation import compute_cca
from app.core.records import round_money
from app.db.database import get_db
from app.models.depreciation import DepreciationInfo
from app.services.rental_tax import depreciation_setting
from app.utils.form_loader import get_cca_classes

router = APIRouter()


class DepreciationInfoUpdate(BaseModel):
    class_code: str = "1"
    description: str | None = None
    cca_rate: float
    opening_ucc: float = 0
    additions: float = 0
    dispositions: float = 0

    @field_validator("cca_rate")
    @classmethod
    def valid_rate(cls, v):
        if not 0 <= v <= 100:
            raise ValueError("The CCA rate is a percentage between 0 and 100.")
        return v

    @field_validator("opening_ucc", "additions", "dispositions")
    @classmethod
    def non_negative(cls, v):
        if v < 0:
            raise ValueError("UCC amounts cannot be negative.")
        return v


class DepreciationInfoResponse(BaseModel):
    id: int
    property_id: int
    class_code: str
    description: str | None
    cca_rate: float
    opening_ucc: float
    additions: float
    dispositions: float

    model_config = {"from_attributes": True}


@router.get("/classes")
def list_classes():
    """Return the usual CCA classes for rental property with their rates."""
    return [{"class_code": code, **info} for code, info in get_cca_classes().items()]


@router.get("/{property_id}", response_model=DepreciationInfoResponse)
def get_depreciation_info(
    property_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    prop = get_owned_property_or_404(property_id, user_id, db)
    if prop.depreciation_info is None:
        raise HTTPException(status_code=404, detail="No CCA settings for this property.")
    return prop.depreciation_info


@router.put("/{property_id}", response_model=DepreciationInfoResponse)
def upsert_depreciation_info(
    property_id: int,
    data: DepreciationInfoUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    prop = get_owned_property_or_404(property_id, user_id, db)
    info = prop.depreciation_info
    if info is None:
        info = DepreciationInfo(property_id=prop.id)
        db.add(info)
    for field, value in data.model_dump().items():
        setattr(info, field, value)
    db.commit()
    db.refresh(info)
    return info


@router.post("/compute/{property_id}")
def compute_depreciation(
    property_id: int,
    net_income_before_cca: float,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Preview the CCA claim for a given net rental income before CCA. Nothing is stored."""
    prop = get_owned_property_or_404(property_id, user_id, db)
    setting = depreciation_setting(prop.depreciation_info)
    if setting is None:
        raise HTTPException(
            status_code=422,
            detail="No CCA settings found. Configure the property's class and rate first.",
        )

    result = compute_cca(setting, Decimal(str(net_income_before_cca)), property_id=prop.id)
    return {
        "property_id": property_id,
        "net_income_before_cca": net_income_before_cca,
        "amount": float(round_money(result.amount)),
        "closing_ucc": float(round_money(result.closing_balance)),
        "detail": result.detail_line,
    }

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id, get_owned_property_or_404
from app.db.database import get_db
from app.models.invoice import Invoice
from app.models.property import Property

router = APIRouter()


class InvoiceCreate(BaseModel):
    property_id: int
    invoice_date: date
    supplier: str | None = None
    description: str | None = None
    category: str | None = None
    amount: float
    gst: float = 0
    qst: float = 0

    @field_validator("amount", "gst", "qst")
    @classmethod
    def non_negative(cls, v):
        if v < 0:
            raise ValueError("Invoice amounts cannot be negative.")
        return v


class InvoiceResponse(BaseModel):
    id: int
    property_id: int
    invoice_date: date
    supplier: str | None
    description: str | None
    category: str | None
    amount: float
    gst: float
    qst: float

    model_config = {"from_attributes": True}


@router.get("/", response_model=list[InvoiceResponse])
def list_invoices(
    property_id: int | None = None,
    year: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    q = db.query(Invoice).join(Property).filter(Property.user_id == user_id)
    if property_id:
        q = q.filter(Invoice.property_id == property_id)
    if year:
        q = q.filter(Invoice.invoice_date >= date(year, 1, 1), Invoice.invoice_date <= date(year, 12, 31))
    return q.order_by(Invoice.invoice_date, Invoice.id).all()


@router.post("/", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    data: InvoiceCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    get_owned_property_or_404(data.property_id, user_id, db)
    invoice = Invoice(**data.model_dump())
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    invoice = (
        db.query(Invoice)
        .join(Property)
        .filter(Invoice.id == invoice_id, Property.user_id == user_id)
        .first()
    )
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found.")
    db.delete(invoice)
    db.commit()

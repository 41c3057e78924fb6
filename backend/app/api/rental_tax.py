"""
Rental tax statements API: prepare a form template, persist it, list, fetch and export to PDF.
"""
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id
from app.core.exceptions import ConflictError, InvalidInputError, NotFoundError, RentalTaxError
from app.db.database import get_db
from app.services import rental_tax as service
from app.utils.pdf_generator import generate_rental_statement_pdf

router = APIRouter()

_STATUS_BY_ERROR = {
    InvalidInputError: 422,
    NotFoundError: 404,
    ConflictError: 409,
}


def _http_error(e: RentalTaxError) -> HTTPException:
    code = _STATUS_BY_ERROR.get(type(e), 400)
    return HTTPException(status_code=code, detail={"message": e.message, **e.details})


class _PayloadPart(BaseModel):
    # Lines carry extra descriptive keys (category, property_id, ...) that are stored as-is
    model_config = ConfigDict(extra="allow")


class MetadataField(_PayloadPart):
    key: str
    label: str | None = None
    type: str | None = None
    value: Any = None
    carry_forward: bool = True


class ExpenseLine(_PayloadPart):
    key: str
    label: str | None = None
    line: str | None = None
    amount: float | None = None


class CcaLine(_PayloadPart):
    key: str
    class_code: str | None = None
    rate: float | None = None
    opening_ucc: float | None = None
    additions: float | None = None
    dispositions: float | None = None
    base: float | None = None
    amount: float | None = None
    closing_ucc: float | None = None


class IncomeFigures(_PayloadPart):
    gross_rents: float | None = None
    other_income: float | None = None
    total_income: float | None = None


class Totals(_PayloadPart):
    total_expenses: float | None = None
    net_income: float | None = None


class FormPayload(BaseModel):
    metadata: list[MetadataField] = []
    income: IncomeFigures = IncomeFigures()
    income_labels: dict[str, str] = {}
    expenses: list[ExpenseLine] = []
    cca: list[CcaLine] | None = None
    totals: Totals | None = None


class StatementCreate(BaseModel):
    form_type: str
    tax_year: int
    property_id: int | None = None
    payload: FormPayload
    notes: str | None = None


@router.get("/prepare")
def prepare(
    form_type: str,
    tax_year: int,
    property_id: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Computed figures plus a pre-filled payload template. Read-only."""
    try:
        result = service.prepare_statement(db, user_id, form_type.upper(), tax_year, property_id)
    except RentalTaxError as e:
        raise _http_error(e)
    return {
        "tax_year": result.tax_year,
        "form_type": result.form_type,
        "property": result.property,
        "computed": result.computed,
        "payload_template": result.payload_template,
        "previous": result.previous,
        "warnings": [w.to_dict() for w in result.warnings],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create(
    data: StatementCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        result = service.create_statement(
            db,
            user_id,
            data.form_type.upper(),
            data.tax_year,
            data.payload.model_dump(exclude_unset=True),
            property_id=data.property_id,
            notes=data.notes,
        )
    except RentalTaxError as e:
        raise _http_error(e)
    return {**result.statement, "warnings": [w.to_dict() for w in result.warnings]}


@router.get("/")
def list_all(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return service.list_statements(db, user_id)


@router.get("/{statement_id}")
def get_one(
    statement_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        statement = service.get_statement(db, user_id, statement_id)
    except RentalTaxError as e:
        raise _http_error(e)
    return service.serialize_statement(statement)


@router.get("/{statement_id}/pdf")
def export_pdf(
    statement_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        statement = service.get_statement(db, user_id, statement_id)
    except RentalTaxError as e:
        raise _http_error(e)

    data = service.serialize_statement(statement)
    pdf_bytes = generate_rental_statement_pdf(data)
    filename = f"{data['form_type']}_{data['tax_year']}_{statement.id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

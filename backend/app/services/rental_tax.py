"""
Rental tax statements: prepare (read-only preview) and create (persist).

Loads the caller's source records, runs aggregation -> form composition ->
carry-forward reconciliation, and stores statements keyed by
(user, form type, property, tax year).
"""
from dataclasses import dataclass, field
from datetime import date

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.config import min_tax_year
from app.core.aggregation import ComputedData, aggregate
from app.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from app.core.form_composer import compose, get_form_definition
from app.core.reconciler import reconcile
from app.core.records import (
    DepreciationSetting,
    Frequency,
    InvoiceExpense,
    MortgageTerms,
    PropertyRecord,
    RecurringAmount,
    to_decimal,
)
from app.core.validator import ValidationIssue, review_statement
from app.models.depreciation import DepreciationInfo
from app.models.expense import Expense
from app.models.invoice import Invoice
from app.models.mortgage import Mortgage
from app.models.property import Property
from app.models.revenue import Revenue
from app.models.tax_statement import RentalTaxStatement

logger = structlog.get_logger()


@dataclass
class PrepareResult:
    tax_year: int
    form_type: str
    property: dict | None
    computed: dict
    payload_template: dict
    previous: dict | None = None
    warnings: list[ValidationIssue] = field(default_factory=list)


@dataclass
class CreateResult:
    statement: dict
    warnings: list[ValidationIssue] = field(default_factory=list)


def validate_tax_year(tax_year) -> int:
    current = date.today().year
    if isinstance(tax_year, bool) or not isinstance(tax_year, int):
        raise InvalidInputError("Tax year must be an integer.", details={"tax_year": tax_year})
    if tax_year < min_tax_year() or tax_year > current + 1:
        raise InvalidInputError(
            f"Tax year must be between {min_tax_year()} and {current + 1}.",
            details={"tax_year": tax_year},
        )
    return tax_year


# ---------------------------------------------------------------------------
# Input provider: ORM rows -> engine records
# ---------------------------------------------------------------------------

def _recurring(row: Revenue | Expense) -> RecurringAmount:
    return RecurringAmount(
        id=row.id,
        label=row.label,
        amount=to_decimal(row.amount),
        frequency=Frequency.parse(row.frequency),
        start_date=row.start_date,
        end_date=row.end_date,
        category=getattr(row, "category", None),
    )


def _invoice(row: Invoice) -> InvoiceExpense:
    return InvoiceExpense(
        id=row.id,
        invoice_date=row.invoice_date,
        base_amount=to_decimal(row.amount),
        tax1=to_decimal(row.gst),
        tax2=to_decimal(row.qst),
        category=row.category,
        description=row.description,
        supplier=row.supplier,
    )


def mortgage_terms(row: Mortgage) -> MortgageTerms:
    return MortgageTerms(
        id=row.id,
        principal=to_decimal(row.principal),
        annual_rate=to_decimal(row.rate_annual),
        amortization_months=row.amortization_months,
        term_months=row.term_months,
        payment_frequency=row.payment_frequency,
        start_date=row.start_date,
        payment_amount=to_decimal(row.payment_amount) if row.payment_amount else None,
    )


def depreciation_setting(row: DepreciationInfo | None) -> DepreciationSetting | None:
    if row is None:
        return None
    return DepreciationSetting(
        class_code=row.class_code,
        cca_rate_percent=to_decimal(row.cca_rate),
        opening_ucc=to_decimal(row.opening_ucc),
        additions=to_decimal(row.additions),
        dispositions=to_decimal(row.dispositions),
        description=row.description,
    )


def to_record(prop: Property) -> PropertyRecord:
    return PropertyRecord(
        id=prop.id,
        name=prop.name,
        address=prop.address,
        ownership_pct=to_decimal(prop.ownership_pct),
        revenues=tuple(_recurring(r) for r in sorted(prop.revenues, key=lambda r: r.id)),
        expenses=tuple(_recurring(e) for e in sorted(prop.expenses, key=lambda e: e.id)),
        invoices=tuple(_invoice(i) for i in sorted(prop.invoices, key=lambda i: i.id)),
        mortgages=tuple(mortgage_terms(m) for m in sorted(prop.mortgages, key=lambda m: m.id)),
        depreciation=depreciation_setting(prop.depreciation_info),
    )


def load_property_records(db: Session, user_id: int, property_id: int | None) -> list[PropertyRecord]:
    """All active properties of the user, or just one; NotFoundError if the scope is empty."""
    stmt = (
        select(Property)
        .where(Property.user_id == user_id, Property.is_active.is_(True))
        .options(
            selectinload(Property.revenues),
            selectinload(Property.expenses),
            selectinload(Property.invoices),
            selectinload(Property.mortgages),
            selectinload(Property.depreciation_info),
        )
        .order_by(Property.id)
    )
    if property_id is not None:
        stmt = stmt.where(Property.id == property_id)
    properties = db.scalars(stmt).all()
    if not properties:
        raise NotFoundError(
            "No property matches the requested scope.",
            details={"user_id": user_id, "property_id": property_id},
        )
    return [to_record(p) for p in properties]


def compute_rental_tax_data(
    db: Session, user_id: int, property_id: int | None, tax_year: int
) -> tuple[ComputedData, PropertyRecord | None]:
    records = load_property_records(db, user_id, property_id)
    computed = aggregate(records, tax_year)
    return computed, records[0] if property_id is not None else None


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

def serialize_statement(statement: RentalTaxStatement) -> dict:
    prop = statement.property
    return {
        "id": statement.id,
        "form_type": statement.form_type,
        "tax_year": statement.tax_year,
        "property_id": statement.property_id,
        "property_name": prop.name if prop else None,
        "property_address": prop.address if prop else None,
        "payload": statement.payload,
        "computed": statement.computed,
        "notes": statement.notes,
        "created_at": statement.created_at.isoformat() if statement.created_at else None,
        "updated_at": statement.updated_at.isoformat() if statement.updated_at else None,
    }


def _scope_filter(stmt, user_id: int, form_type: str, property_id: int | None):
    stmt = stmt.where(
        RentalTaxStatement.user_id == user_id,
        RentalTaxStatement.form_type == form_type,
    )
    if property_id is None:
        return stmt.where(RentalTaxStatement.property_id.is_(None))
    return stmt.where(RentalTaxStatement.property_id == property_id)


def existing_statement_id(
    db: Session, user_id: int, form_type: str, property_id: int | None, tax_year: int
) -> int | None:
    stmt = _scope_filter(select(RentalTaxStatement.id), user_id, form_type, property_id)
    return db.scalars(stmt.where(RentalTaxStatement.tax_year == tax_year)).first()


def _conflict(statement_id: int | None, form_type: str, tax_year: int) -> ConflictError:
    return ConflictError(
        "A statement already exists for this form, property and tax year.",
        details={"statement_id": statement_id, "tax_year": tax_year, "form_type": form_type},
    )


def find_previous_statement(
    db: Session, user_id: int, form_type: str, property_id: int | None, tax_year: int
) -> RentalTaxStatement | None:
    """Most recent statement of the same scope with a strictly smaller tax year."""
    stmt = _scope_filter(select(RentalTaxStatement), user_id, form_type, property_id)
    stmt = stmt.where(RentalTaxStatement.tax_year < tax_year).order_by(
        RentalTaxStatement.tax_year.desc(),
        RentalTaxStatement.created_at.desc(),
        RentalTaxStatement.id.desc(),
    )
    return db.scalars(stmt.limit(1)).first()


def prepare_statement(
    db: Session,
    user_id: int,
    form_type: str,
    tax_year: int,
    property_id: int | None = None,
) -> PrepareResult:
    """Compute a statement template for review. Never writes to the database."""
    validate_tax_year(tax_year)
    get_form_definition(form_type)

    computed, prop = compute_rental_tax_data(db, user_id, property_id, tax_year)
    previous = find_previous_statement(db, user_id, form_type, property_id, tax_year)

    proposed = compose(form_type, computed, prop, tax_year)
    merged = reconcile(proposed, previous.payload if previous else None)
    computed_data = computed.to_dict()
    review = review_statement(merged.payload, computed_data)

    logger.info(
        "rental_tax_prepared",
        user_id=user_id,
        form_type=form_type,
        tax_year=tax_year,
        property_id=property_id,
        previous_id=previous.id if previous else None,
        warnings=len(merged.warnings),
    )
    return PrepareResult(
        tax_year=tax_year,
        form_type=form_type,
        property=(
            {"id": prop.id, "name": prop.name, "address": prop.address} if prop else None
        ),
        computed=computed_data,
        payload_template=merged.payload,
        previous=serialize_statement(previous) if previous else None,
        warnings=merged.warnings + review.issues,
    )


def create_statement(
    db: Session,
    user_id: int,
    form_type: str,
    tax_year: int,
    payload: dict,
    property_id: int | None = None,
    notes: str | None = None,
) -> CreateResult:
    """
    Persist the payload the caller submitted. Totals are recomputed and
    negatives clamped, but nothing is re-merged; `computed` is derived again
    from source records.
    """
    validate_tax_year(tax_year)
    get_form_definition(form_type)

    computed, _ = compute_rental_tax_data(db, user_id, property_id, tax_year)

    existing = existing_statement_id(db, user_id, form_type, property_id, tax_year)
    if existing is not None:
        raise _conflict(existing, form_type, tax_year)

    normalized = reconcile(payload)
    statement = RentalTaxStatement(
        user_id=user_id,
        property_id=property_id,
        form_type=form_type,
        tax_year=tax_year,
        payload=normalized.payload,
        computed=computed.to_dict(),
        notes=notes,
    )
    db.add(statement)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent create of the same scope
        db.rollback()
        raise _conflict(
            existing_statement_id(db, user_id, form_type, property_id, tax_year), form_type, tax_year
        ) from None
    db.refresh(statement)

    logger.info(
        "rental_tax_created",
        statement_id=statement.id,
        user_id=user_id,
        form_type=form_type,
        tax_year=tax_year,
        property_id=property_id,
    )
    return CreateResult(statement=serialize_statement(statement), warnings=normalized.warnings)


def list_statements(db: Session, user_id: int) -> list[dict]:
    stmt = (
        select(RentalTaxStatement)
        .where(RentalTaxStatement.user_id == user_id)
        .order_by(RentalTaxStatement.tax_year.desc(), RentalTaxStatement.created_at.desc())
    )
    return [serialize_statement(s) for s in db.scalars(stmt).all()]


def get_statement(db: Session, user_id: int, statement_id: int) -> RentalTaxStatement:
    statement = db.scalars(
        select(RentalTaxStatement).where(
            RentalTaxStatement.id == statement_id,
            RentalTaxStatement.user_id == user_id,
        )
    ).first()
    if statement is None:
        raise NotFoundError("Rental tax statement not found.", details={"statement_id": statement_id})
    return statement

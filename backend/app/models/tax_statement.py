from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base


class RentalTaxStatement(Base):
    __tablename__ = "rental_tax_statements"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    property_id: Mapped[int | None] = mapped_column(ForeignKey("properties.id"), index=True)
    # 'T776' | 'TP128'
    form_type: Mapped[str] = mapped_column(String(10), nullable=False)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)

    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    computed: Mapped[dict] = mapped_column(JSON, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "form_type", "property_id", "tax_year", name="uq_statement_scope"),
        # NULLs are distinct in the constraint above, so portfolio statements need their own index
        Index(
            "uq_portfolio_statement_scope",
            "user_id",
            "form_type",
            "tax_year",
            unique=True,
            sqlite_where=text("property_id IS NULL"),
            postgresql_where=text("property_id IS NULL"),
        ),
    )

    property: Mapped["Property"] = relationship("Property")  # noqa: F821

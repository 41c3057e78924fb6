from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base


class Mortgage(Base):
    __tablename__ = "mortgages"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    lender: Mapped[str | None] = mapped_column(String(200))
    principal: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False)
    # 0.05 == 5 %
    rate_annual: Mapped[float] = mapped_column(Numeric(7, 6), nullable=False)
    amortization_months: Mapped[int] = mapped_column(Integer, nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False)
    # payments per year: 12, 24, 26, 52, ...
    payment_frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_amount: Mapped[float | None] = mapped_column(Numeric(12, 2))

    property: Mapped["Property"] = relationship("Property", back_populates="mortgages")  # noqa: F821

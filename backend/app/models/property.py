from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str | None] = mapped_column(Text)
    acquisition_date: Mapped[date | None] = mapped_column(Date)
    # percentage in [0, 100]
    ownership_pct: Mapped[float] = mapped_column(Numeric(5, 2), nullable=False, default=100)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    revenues: Mapped[list["Revenue"]] = relationship(  # noqa: F821
        "Revenue", back_populates="property", cascade="all, delete-orphan"
    )
    expenses: Mapped[list["Expense"]] = relationship(  # noqa: F821
        "Expense", back_populates="property", cascade="all, delete-orphan"
    )
    invoices: Mapped[list["Invoice"]] = relationship(  # noqa: F821
        "Invoice", back_populates="property", cascade="all, delete-orphan"
    )
    mortgages: Mapped[list["Mortgage"]] = relationship(  # noqa: F821
        "Mortgage", back_populates="property", cascade="all, delete-orphan"
    )
    depreciation_info: Mapped["DepreciationInfo"] = relationship(  # noqa: F821
        "DepreciationInfo", back_populates="property", cascade="all, delete-orphan", uselist=False
    )

from sqlalchemy import ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base


class DepreciationInfo(Base):
    """CCA settings of one property (at most one row per property)."""

    __tablename__ = "depreciation_info"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"), nullable=False, unique=True, index=True
    )
    class_code: Mapped[str] = mapped_column(String(10), nullable=False, default="1")
    description: Mapped[str | None] = mapped_column(Text)
    # percentage in [0, 100]
    cca_rate: Mapped[float] = mapped_column(Numeric(5, 2), nullable=False, default=0)
    opening_ucc: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    additions: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    dispositions: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)

    property: Mapped["Property"] = relationship(  # noqa: F821
        "Property", back_populates="depreciation_info"
    )

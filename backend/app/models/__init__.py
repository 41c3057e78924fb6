from app.models.depreciation import DepreciationInfo
from app.models.expense import Expense
from app.models.invoice import Invoice
from app.models.mortgage import Mortgage
from app.models.property import Property
from app.models.revenue import Revenue
from app.models.tax_statement import RentalTaxStatement

__all__ = [
    "Property",
    "Revenue",
    "Expense",
    "Invoice",
    "Mortgage",
    "DepreciationInfo",
    "RentalTaxStatement",
]

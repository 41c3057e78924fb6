from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import depreciation, expenses, invoices, mortgages, properties, rental_tax, revenues
from app.config import APP_VERSION
from app.db.database import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="Rental Tax Engine API",
    description="Rental property income statements (T776 / TP128) computed from revenues, expenses, mortgages and CCA",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(properties.router, prefix="/api/properties", tags=["properties"])
app.include_router(revenues.router, prefix="/api/revenues", tags=["revenues"])
app.include_router(expenses.router, prefix="/api/expenses", tags=["expenses"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["invoices"])
app.include_router(mortgages.router, prefix="/api/mortgages", tags=["mortgages"])
app.include_router(depreciation.router, prefix="/api/depreciation", tags=["depreciation"])
app.include_router(rental_tax.router, prefix="/api/rental-tax", tags=["rental-tax"])


@app.get("/health")
def health_check():
    return {"status": "ok", "version": APP_VERSION}

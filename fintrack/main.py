"""FastAPI application for fintrack."""

import logging
from datetime import date

from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fintrack.auth import get_user_transactions
from fintrack.config import settings
from fintrack.db.sqlite import MAX_PAGE_SIZE, Database, UserTransactions, get_database
from fintrack.errors import FintrackError, TransactionNotFoundError
from fintrack.models import (
    CategoryBreakdown,
    CategoryTotal,
    DashboardOverview,
    DeleteResponse,
    FinancialSummary,
    MonthlyReport,
    ReceiptResponse,
    SavedTransactionInfo,
    SettingsResponse,
    Transaction,
    TransactionCreate,
    TransactionList,
    TransactionType,
    TransactionUpdate,
    TrendPeriod,
    TrendPoint,
)
from fintrack.receipts.llm_client import ExtractionClient, LiteLLMExtractionClient
from fintrack.receipts.pipeline import ReceiptPipeline, ReceiptUpload
from fintrack.services import reports

logger = logging.getLogger(__name__)

app = FastAPI(
    title="fintrack",
    description="Personal finance tracker with AI receipt extraction",
    version="0.1.0",
)

# CORS for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    """Initialize on startup."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings.log_config()


@app.exception_handler(FintrackError)
async def fintrack_error_handler(request: Request, exc: FintrackError):
    """Render application errors as JSON with their mapped status code."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def get_extraction_client() -> ExtractionClient:
    """Get the model client used for receipt extraction."""
    return LiteLLMExtractionClient.from_settings(settings)


@app.get("/health")
async def health_check(database: Database = Depends(get_database)):
    """Health check endpoint."""
    return {"status": "healthy", "transaction_count": database.get_transaction_count()}


@app.get("/settings", response_model=SettingsResponse)
async def get_settings():
    """Get current settings."""
    return SettingsResponse(llm_model=settings.llm_model, has_gemini_key=settings.has_gemini_key)


# ==================== RECEIPT ENDPOINTS ====================


@app.post("/process-receipt", response_model=ReceiptResponse)
async def process_receipt(
    file: UploadFile | None = File(None),
    store: UserTransactions = Depends(get_user_transactions),
    client: ExtractionClient = Depends(get_extraction_client),
):
    """Extract a transaction from a receipt image or PDF and save it."""
    upload = None
    if file is not None:
        upload = ReceiptUpload(filename=file.filename, content_type=file.content_type, contents=await file.read())

    result = await ReceiptPipeline(client, store).run(upload)
    return ReceiptResponse(
        data=result.data,
        transaction=SavedTransactionInfo(id=result.transaction.id, message="Transaction saved successfully!"),
    )


# ==================== TRANSACTION ENDPOINTS ====================


@app.get("/transactions", response_model=TransactionList)
async def list_transactions(
    start: date = Query(alias="from"),
    end: date = Query(alias="to"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    search: str | None = None,
    type: TransactionType | None = None,
    category: str | None = None,
    store: UserTransactions = Depends(get_user_transactions),
):
    """Get a page of transactions with optional filters."""
    return store.list_transactions(
        start, end, limit=limit, offset=offset, search=search, type=type, category=category
    )


@app.post("/transactions", response_model=Transaction, status_code=201)
async def create_transaction(
    data: TransactionCreate,
    store: UserTransactions = Depends(get_user_transactions),
):
    """Record a transaction entered by hand."""
    return store.create(data)


@app.patch("/transactions/{transaction_id}", response_model=Transaction)
async def update_transaction(
    transaction_id: int,
    data: TransactionUpdate,
    store: UserTransactions = Depends(get_user_transactions),
):
    """Update fields of one of the caller's transactions."""
    updated = store.update(transaction_id, data)
    if updated is None:
        raise TransactionNotFoundError()
    return updated


@app.delete("/transactions/{transaction_id}", response_model=DeleteResponse)
async def delete_transaction(
    transaction_id: int,
    store: UserTransactions = Depends(get_user_transactions),
):
    """Delete a transaction; deleting someone else's is a no-op with count 0."""
    return DeleteResponse(count=store.delete(transaction_id))


@app.get("/transactions/summary", response_model=list[CategoryTotal])
async def get_summary(
    type: TransactionType,
    start: date = Query(alias="from"),
    end: date = Query(alias="to"),
    store: UserTransactions = Depends(get_user_transactions),
):
    """Get totals by category for one transaction type."""
    return store.summary(start, end, type)


@app.get("/transactions/categories", response_model=list[str])
async def get_categories(
    start: date = Query(alias="from"),
    end: date = Query(alias="to"),
    store: UserTransactions = Depends(get_user_transactions),
):
    """Get the categories used in a date range."""
    return store.categories(start, end)


# ==================== REPORT ENDPOINTS ====================


@app.get("/reports/monthly", response_model=list[MonthlyReport])
async def get_monthly_report(
    start: date = Query(alias="from"),
    end: date = Query(alias="to"),
    store: UserTransactions = Depends(get_user_transactions),
):
    """Get income, expenses and top category per month."""
    return reports.monthly_report(store.in_range(start, end))


@app.get("/reports/category-breakdown", response_model=list[CategoryBreakdown])
async def get_category_breakdown(
    start: date = Query(alias="from"),
    end: date = Query(alias="to"),
    type: TransactionType = TransactionType.EXPENSE,
    store: UserTransactions = Depends(get_user_transactions),
):
    """Get each category's share of income or expenses."""
    return reports.category_breakdown(store.in_range(start, end), type)


@app.get("/reports/financial-summary", response_model=FinancialSummary)
async def get_financial_summary(
    start: date = Query(alias="from"),
    end: date = Query(alias="to"),
    store: UserTransactions = Depends(get_user_transactions),
):
    """Get totals and the average transaction for a date range."""
    return reports.financial_summary(store.in_range(start, end))


@app.get("/reports/trend", response_model=list[TrendPoint])
async def get_trend_data(
    start: date = Query(alias="from"),
    end: date = Query(alias="to"),
    period: TrendPeriod = TrendPeriod.MONTHLY,
    store: UserTransactions = Depends(get_user_transactions),
):
    """Get the income/expense series for a period granularity."""
    return reports.trend_data(store.in_range(start, end), period)


# ==================== DASHBOARD ENDPOINTS ====================


@app.get("/dashboard/overview", response_model=DashboardOverview)
async def get_dashboard_overview(store: UserTransactions = Depends(get_user_transactions)):
    """Get this month's totals and the latest transactions."""
    return reports.dashboard_overview(store)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fintrack.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.dev_mode,
    )

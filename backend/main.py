from fastapi import FastAPI, Depends, Header, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import json

import models
import crud
import schemas
from config import get_settings
from database import engine, get_db
from errors import register_exception_handlers
from logging_config import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

# Create all tables on startup if they don't exist
models.Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Expense Tracker API",
    description="A personal expense tracker API with idempotent expense creation.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

register_exception_handlers(app)


def _replay(expense: models.Expense) -> JSONResponse:
    # 200 (not 201) signals that the key was already used
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=jsonable_encoder(schemas.ExpenseResponse.model_validate(expense)),
    )


@app.get("/", tags=["Health"])
def root():
    return {"status": "ok", "message": "Expense Tracker API is running."}


@app.get("/health", tags=["Health"])
def health():
    return {"status": "healthy"}


@app.post(
    "/expenses",
    response_model=schemas.ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Expenses"],
    summary="Create a new expense (idempotent)",
)
async def create_expense(
    request: Request,
    idempotency_key: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    """
    Create a new expense entry.

    - **Idempotent**: the `Idempotency-Key` header is required. Sending a key
      that was already used returns the original record with status 200,
      without reading the body or creating a duplicate.
    - Body: `{"amount": number, "category": str, "description": str, "date": "YYYY-MM-DD"}`.
    - `amount` is converted to integer cents, rounding half a cent up.
    """
    if not idempotency_key or not idempotency_key.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Idempotency-Key header is required")

    existing = await run_in_threadpool(crud.get_expense_by_idempotency_key, db, idempotency_key)
    if existing:
        logger.info("expense_replayed", idempotency_key=idempotency_key, expense_id=existing.id)
        return _replay(existing)

    # The body is only read once the key is known to be unused
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else None
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be valid JSON")

    expense_in = schemas.ExpenseCreate.model_validate(payload)
    expense, was_created = await run_in_threadpool(crud.create_expense, db, idempotency_key, expense_in)

    if not was_created:
        return _replay(expense)

    logger.info(
        "expense_created",
        idempotency_key=idempotency_key,
        expense_id=expense.id,
        amount_cents=expense.amount_cents,
        category=expense.category,
    )
    return expense


@app.get(
    "/expenses",
    response_model=list[schemas.ExpenseResponse],
    tags=["Expenses"],
    summary="List expenses with optional filter and sort",
)
def list_expenses(
    category: Optional[str] = Query(default=None, description="Filter by category (exact match)"),
    sort_date: Optional[str] = Query(default=None, description="Sort by date: desc (default) or asc"),
    db: Session = Depends(get_db),
):
    """
    Retrieve all expenses, newest date first when `sort_date` is absent or
    `desc`; any other value lists the oldest date first.
    Expenses sharing a date are listed most recently created first.
    """
    category = category.strip() if category else None
    sort = "desc" if not sort_date or sort_date == "desc" else "asc"
    return crud.list_expenses(db, category=category, sort=sort)


@app.get(
    "/expenses/categories",
    response_model=list[str],
    tags=["Expenses"],
    summary="Get all distinct categories",
)
def list_categories(db: Session = Depends(get_db)):
    """Returns all unique categories currently in the database, for use in filter dropdowns."""
    return crud.list_categories(db)

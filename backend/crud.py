from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from models import Expense
from schemas import ExpenseCreate, SortDirection
from errors import DuplicateIdempotencyKey
from logging_config import get_logger
from typing import Optional
import uuid

logger = get_logger(__name__)

# MySQL ER_DUP_ENTRY and PostgreSQL unique_violation
MYSQL_DUP_ENTRY = 1062
PG_UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell a unique-index violation apart from other integrity failures."""
    orig = exc.orig
    if getattr(orig, "pgcode", None) == PG_UNIQUE_VIOLATION:
        return True
    args = getattr(orig, "args", ())
    if args and args[0] == MYSQL_DUP_ENTRY:
        return True
    return "UNIQUE constraint failed" in str(orig)


def get_expense_by_idempotency_key(db: Session, idempotency_key: str) -> Optional[Expense]:
    return (
        db.query(Expense)
        .filter(Expense.idempotency_key == idempotency_key)
        .first()
    )


def insert_expense(db: Session, expense: Expense) -> Expense:
    """
    Persist a new expense. The unique index on idempotency_key is the only
    guard against duplicates; a violation is rolled back and re-raised as
    DuplicateIdempotencyKey.
    """
    try:
        db.add(expense)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e):
            raise DuplicateIdempotencyKey(expense.idempotency_key) from e
        raise
    db.refresh(expense)
    return expense


def create_expense(
    db: Session, idempotency_key: str, expense_in: ExpenseCreate
) -> tuple[Expense, bool]:
    """
    Insert a new expense for `idempotency_key`. If a concurrent request with
    the same key won the insert, return the stored record instead.
    Returns (expense, was_created).
    """
    new_expense = Expense(
        id=str(uuid.uuid4()),
        idempotency_key=idempotency_key,
        amount_cents=expense_in.amount_cents,
        category=expense_in.category,
        description=expense_in.description,
        date=expense_in.date,
    )

    try:
        return insert_expense(db, new_expense), True
    except DuplicateIdempotencyKey:
        existing = get_expense_by_idempotency_key(db, idempotency_key)
        if existing is None:
            raise
        logger.info("duplicate_key_race_resolved", idempotency_key=idempotency_key, expense_id=existing.id)
        return existing, False


def list_expenses(
    db: Session,
    category: Optional[str] = None,
    sort: SortDirection = "desc",
) -> list[Expense]:
    """
    Fetch expenses with an optional exact category match, ordered by date
    in the requested direction. Records sharing a date are always listed
    newest-inserted first.
    """
    query = db.query(Expense)

    if category:
        query = query.filter(Expense.category == category)

    date_order = Expense.date.asc() if sort == "asc" else Expense.date.desc()
    return query.order_by(date_order, Expense.created_at.desc()).all()


def list_categories(db: Session) -> list[str]:
    """Return distinct categories for filter dropdown."""
    rows = db.query(Expense.category).distinct().order_by(Expense.category).all()
    return [r[0] for r in rows]

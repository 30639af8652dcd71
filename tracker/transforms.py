import json
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Tuple

import pandas as pd

from tracker.domain import Category, Expense, Profile
from tracker.functional import parse_amount, parse_day, safe_category

EXPENSE_COLUMNS = ["date", "merchant", "category", "amount", "currency", "payment_method", "notes"]


def expense_from_row(row: Mapping, categories: Iterable[Category] = ()) -> Expense:
    """Build an Expense from a stored row, resolving its category once."""
    category_id = row.get("category_id")
    return Expense(
        id=str(row["id"]),
        date=row.get("date"),
        amount=row.get("amount"),
        currency=row.get("currency") or "USD",
        category=safe_category(categories, category_id).map(Category.ref).get_or_else(None),
        category_id=category_id,
        merchant=row.get("merchant"),
        payment_method=row.get("payment_method"),
        notes=row.get("notes"),
        user_id=row.get("user_id"),
    )


def load_seed(
    path: str,
) -> Tuple[
    Tuple[Profile, ...],
    Tuple[Category, ...],
    Tuple[Expense, ...],
]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    profiles = tuple(Profile(**p) for p in data.get("profiles", []))
    categories = tuple(Category(**c) for c in data.get("categories", []))
    expenses = tuple(expense_from_row(e, categories) for e in data.get("expenses", []))

    return profiles, categories, expenses


def resolve_categories(
    trans: Tuple[Expense, ...], cats: Iterable[Category]
) -> Tuple[Expense, ...]:
    by_id = {c.id: c.ref() for c in cats}
    return tuple(
        Expense(
            id=e.id,
            date=e.date,
            amount=e.amount,
            currency=e.currency,
            category=by_id.get(e.category_id) if e.category_id else None,
            category_id=e.category_id if e.category_id in by_id else None,
            merchant=e.merchant,
            payment_method=e.payment_method,
            notes=e.notes,
            user_id=e.user_id,
        )
        for e in trans
    )


def add_expense(
    trans: Tuple[Expense, ...], e: Expense
) -> Tuple[Expense, ...]:
    return trans + (e,)


def replace_expense(
    trans: Tuple[Expense, ...], e: Expense
) -> Tuple[Expense, ...]:
    return tuple(e if t.id == e.id else t for t in trans)


def remove_expense(
    trans: Tuple[Expense, ...], expense_id: str
) -> Tuple[Expense, ...]:
    return tuple(filter(lambda t: t.id != expense_id, trans))


def sort_by_date_desc(trans: Iterable[Expense]) -> Tuple[Expense, ...]:
    # unparseable dates sort last
    return tuple(sorted(
        trans,
        key=lambda t: parse_day(t.date).map(lambda d: d.toordinal()).get_or_else(0),
        reverse=True,
    ))


def expenses_to_frame(trans: Iterable[Expense], uncategorized: str = "Uncategorized") -> pd.DataFrame:
    rows = []
    for t in trans:
        rows.append({
            "id": t.id,
            "date": pd.to_datetime(parse_day(t.date).get_or_else(None), errors="coerce"),
            "merchant": t.merchant or "",
            "category": t.category.name if t.category else uncategorized,
            "amount": float(parse_amount(t.amount).get_or_else(0)),
            "currency": t.currency,
            "payment_method": t.payment_method or "",
            "notes": t.notes or "",
        })
    df = pd.DataFrame(rows, columns=["id"] + EXPENSE_COLUMNS)
    if not df.empty:
        df["date"] = pd.to_datetime(df["date"], errors="coerce")
    return df


def total_amount(trans: Iterable[Expense], currency: Optional[str] = None) -> Decimal:
    return sum(
        (parse_amount(t.amount).get_or_else(Decimal("0"))
         for t in trans if currency is None or t.currency == currency),
        Decimal("0"),
    )

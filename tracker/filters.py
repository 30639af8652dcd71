from datetime import date
from itertools import islice
from typing import Callable, Iterable, Iterator, Optional

from tracker.domain import Expense
from tracker.functional import parse_day

Predicate = Callable[[Expense], bool]


def by_category(cat_id: Optional[str]) -> Predicate:
    def _filter(t: Expense) -> bool:
        return t.category_id == cat_id

    return _filter


def by_date_range(start: date, end: date) -> Predicate:
    def _filter(t: Expense) -> bool:
        day = parse_day(t.date).get_or_else(None)
        return day is not None and start <= day <= end

    return _filter


def by_payment_method(method: str) -> Predicate:
    def _filter(t: Expense) -> bool:
        return t.payment_method == method

    return _filter


def by_search_term(term: str) -> Predicate:
    """Case-insensitive match on merchant, category name or notes."""
    needle = (term or "").strip().lower()

    def _filter(t: Expense) -> bool:
        if not needle:
            return True
        fields = (t.merchant, t.category.name if t.category else None, t.notes)
        return any(f and needle in f.lower() for f in fields)

    return _filter


def all_of(*preds: Predicate) -> Predicate:
    def _filter(t: Expense) -> bool:
        return all(p(t) for p in preds)

    return _filter


def iter_expenses(
    trans: Iterable[Expense], pred: Predicate
) -> Iterator[Expense]:
    for t in trans:
        if pred(t):
            yield t


def recent_expenses(trans: Iterable[Expense], k: int = 5) -> tuple[Expense, ...]:
    """First k expenses of a list already ordered newest first."""
    return tuple(islice(trans, max(0, k)))

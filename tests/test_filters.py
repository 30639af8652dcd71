from datetime import date

from tracker.domain import CategoryRef, Expense
from tracker.filters import (
    all_of,
    by_category,
    by_date_range,
    by_payment_method,
    by_search_term,
    iter_expenses,
    recent_expenses,
)

FOOD = CategoryRef("Food", "#f59e0b")

t1 = Expense("t1", "2024-05-01", 10, category=FOOD, category_id="food", merchant="Corner Deli", payment_method="card")
t2 = Expense("t2", "2024-05-02", 5, category_id=None, merchant="Bus", payment_method="cash", notes="Commute to office")
t3 = Expense("t3", "2023-05-01", 7, category=FOOD, category_id="food", payment_method="card")


def test_by_category():
    result = list(filter(by_category("food"), [t1, t2, t3]))
    assert [t.id for t in result] == ["t1", "t3"]


def test_by_date_range():
    result = list(filter(by_date_range(date(2024, 1, 1), date(2024, 12, 31)), [t1, t2, t3]))
    assert [t.id for t in result] == ["t1", "t2"]


def test_by_payment_method():
    assert [t.id for t in filter(by_payment_method("cash"), [t1, t2, t3])] == ["t2"]


def test_by_search_term_matches_merchant_category_and_notes():
    assert [t.id for t in filter(by_search_term("deli"), [t1, t2, t3])] == ["t1"]
    assert [t.id for t in filter(by_search_term("FOOD"), [t1, t2, t3])] == ["t1", "t3"]
    assert [t.id for t in filter(by_search_term("office"), [t1, t2, t3])] == ["t2"]
    assert len(list(filter(by_search_term("  "), [t1, t2, t3]))) == 3


def test_all_of_and_iter_expenses():
    pred = all_of(by_category("food"), by_date_range(date(2024, 1, 1), date(2024, 12, 31)))
    gen = iter_expenses([t1, t2, t3], pred)
    assert next(gen).id == "t1"
    assert list(gen) == []


def test_recent_expenses():
    assert [t.id for t in recent_expenses([t1, t2, t3], 2)] == ["t1", "t2"]
    assert recent_expenses([t1], 5) == (t1,)
    assert recent_expenses([t1], -1) == ()

import pytest

from tracker.domain import Category, Expense, Profile
from tracker.exceptions import FetchError, StoreError
from tracker.fetch import DashboardData, load_dashboard, load_dashboard_sync
from tracker.store import ExpenseStore


def make_store():
    return ExpenseStore(
        profiles=(Profile("u1", "a@example.com"),),
        categories=(Category("c1", "Food", "#f59e0b", "🍔", is_default=True),),
        expenses=tuple(
            Expense(f"e{i}", f"2024-03-{i:02d}", i, category_id="c1", user_id="u1")
            for i in range(1, 11)
        ),
    )


class BrokenStore(ExpenseStore):
    def list_expenses(self, user_id, limit=None):
        raise StoreError("connection reset")


@pytest.mark.asyncio
async def test_load_dashboard_fetches_both_lists():
    data = await load_dashboard(make_store(), "u1", limit=3)

    assert isinstance(data, DashboardData)
    assert [e.id for e in data.expenses] == ["e10", "e9", "e8"]
    assert [c.name for c in data.categories] == ["Food"]
    assert data.expenses[0].category.name == "Food"


@pytest.mark.asyncio
async def test_load_dashboard_without_limit():
    data = await load_dashboard(make_store(), "u1", limit=None)
    assert len(data.expenses) == 10


@pytest.mark.asyncio
async def test_load_dashboard_wraps_store_errors():
    with pytest.raises(FetchError, match="connection reset"):
        await load_dashboard(BrokenStore(), "u1")


def test_load_dashboard_sync():
    data = load_dashboard_sync(make_store(), "u1", limit=1)
    assert [e.id for e in data.expenses] == ["e10"]

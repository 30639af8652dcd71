from decimal import Decimal
from pathlib import Path

import pytest

from tracker.domain import Category, Expense, Profile
from tracker.exceptions import (
    AuthError,
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from tracker.store import ExpenseStore, Session

SEED_PATH = Path(__file__).parent.parent / "data" / "seed.json"


@pytest.fixture
def store():
    profiles = (
        Profile("u1", "alex@example.com", "Alex", "USD"),
        Profile("u2", "sam@example.com", "Sam", "EUR"),
    )
    categories = (
        Category("c-food", "Food", "#f59e0b", "🍔", is_default=True),
        Category("c-coffee", "Coffee", "#14b8a6", "☕", user_id="u1"),
        Category("c-travel", "Travel", "#22d3ee", "✈️", user_id="u2"),
    )
    expenses = (
        Expense("e1", "2024-03-01", 10, category_id="c-food", user_id="u1"),
        Expense("e2", "2024-03-05", 4, category_id="c-coffee", user_id="u1"),
        Expense("e3", "2024-02-20", 30, user_id="u1"),
        Expense("e4", "2024-03-02", 300, category_id="c-travel", user_id="u2"),
    )
    return ExpenseStore(profiles, categories, expenses)


def test_sign_in(store):
    assert store.sign_in("  ALEX@example.com ") == Session(user_id="u1", email="alex@example.com")
    with pytest.raises(AuthError):
        store.sign_in("nobody@example.com")


def test_from_seed():
    seeded = ExpenseStore.from_seed(str(SEED_PATH))
    session = seeded.sign_in("alex@example.com")
    assert seeded.list_expenses(session.user_id)


def test_list_expenses_scoped_sorted_and_joined(store):
    expenses = store.list_expenses("u1")

    assert [e.id for e in expenses] == ["e2", "e1", "e3"]
    assert expenses[0].category.name == "Coffee"
    assert expenses[2].category is None
    assert [e.id for e in store.list_expenses("u1", limit=2)] == ["e2", "e1"]
    assert [e.id for e in store.list_expenses("u2")] == ["e4"]


def test_list_categories_defaults_plus_own(store):
    assert [c.name for c in store.list_categories("u1")] == ["Coffee", "Food"]
    assert [c.name for c in store.list_categories("u2")] == ["Food", "Travel"]


def test_create_expense_uses_profile_currency(store):
    created = store.create_expense("u2", {"date": "2024-03-09", "amount": "12.5", "category_id": "c-food"})

    assert created.currency == "EUR"
    assert created.amount == Decimal("12.5")
    assert created.date == "2024-03-09"
    assert created.category.name == "Food"
    assert created.user_id == "u2"
    assert len(store.list_expenses("u2")) == 2


def test_create_expense_validation(store):
    with pytest.raises(ValidationError) as exc:
        store.create_expense("u1", {"date": "2024-03-09", "amount": ""})
    assert exc.value.field == "amount"

    # another user's category is not visible
    with pytest.raises(NotFoundError):
        store.create_expense("u1", {"date": "2024-03-09", "amount": 1, "category_id": "c-travel"})


def test_update_and_delete_expense(store):
    updated = store.update_expense("u1", "e3", {"date": "2024-02-21", "amount": 31, "merchant": "Shop"})
    assert updated.merchant == "Shop"
    assert updated.amount == Decimal("31")

    store.delete_expense("u1", "e3")
    assert "e3" not in [e.id for e in store.list_expenses("u1")]
    with pytest.raises(NotFoundError):
        store.get_expense("u1", "e3")


def test_other_users_expenses_are_invisible(store):
    with pytest.raises(NotFoundError):
        store.update_expense("u1", "e4", {"date": "2024-03-02", "amount": 1})
    with pytest.raises(NotFoundError):
        store.delete_expense("u1", "e4")
    assert store.get_expense("u2", "e4").amount == 300


def test_create_category(store):
    created = store.create_category("u1", {"name": " Pets ", "color": "#ef4444", "icon": "🏠"})

    assert created.name == "Pets"
    assert created.user_id == "u1"
    assert not created.is_default
    assert "Pets" in [c.name for c in store.list_categories("u1")]
    assert "Pets" not in [c.name for c in store.list_categories("u2")]


def test_category_names_unique_per_user(store):
    with pytest.raises(DuplicateError):
        store.create_category("u1", {"name": "Coffee"})
    assert store.create_category("u2", {"name": "Coffee"}).user_id == "u2"
    with pytest.raises(ValidationError):
        store.create_category("u1", {"name": "  "})


def test_default_categories_are_read_only(store):
    with pytest.raises(PermissionDeniedError):
        store.update_category("u1", "c-food", {"name": "Groceries"})
    with pytest.raises(PermissionDeniedError):
        store.delete_category("u2", "c-food")


def test_update_category(store):
    updated = store.update_category("u1", "c-coffee", {"name": "Cafes", "color": "#000000", "icon": "☕"})
    assert updated.name == "Cafes"
    assert store.get_expense("u1", "e2").category.name == "Cafes"
    with pytest.raises(NotFoundError):
        store.update_category("u2", "c-coffee", {"name": "Mine"})


def test_delete_category_unlinks_expenses(store):
    store.delete_category("u1", "c-coffee")

    e2 = store.get_expense("u1", "e2")
    assert e2.category_id is None
    assert e2.category is None
    assert "Coffee" not in [c.name for c in store.list_categories("u1")]


def test_profiles(store):
    assert store.get_profile("u1").currency == "USD"
    updated = store.update_profile("u1", currency="GBP", notification_preferences={"email": False, "in_app": True})
    assert updated.currency == "GBP"
    assert store.get_profile("u1").notification_preferences["email"] is False

    with pytest.raises(ValidationError):
        store.update_profile("u1", email="x@y.z")
    with pytest.raises(NotFoundError):
        store.get_profile("ghost")

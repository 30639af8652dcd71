"""In-memory expense store scoped to the signed-in user.

Stands in for the hosted backend: every query is filtered by user id, rows
owned by someone else are invisible, and default categories are shared but
read-only.
"""
import threading
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from tracker.domain import Category, Expense, Profile
from tracker.exceptions import (
    AuthError,
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from tracker.functional import check_editable, validate_category_form, validate_expense_form
from tracker.logger import get_logger
from tracker.transforms import expense_from_row, load_seed, sort_by_date_desc

logger = get_logger("store")


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str


class ExpenseStore:

    def __init__(
        self,
        profiles: Tuple[Profile, ...] = (),
        categories: Tuple[Category, ...] = (),
        expenses: Tuple[Expense, ...] = (),
        payment_methods: Optional[Tuple[str, ...]] = None,
    ):
        self._lock = threading.RLock()
        self._profiles: Dict[str, Profile] = {p.id: p for p in profiles}
        self._categories: Dict[str, Category] = {c.id: c for c in categories}
        self._expenses: Dict[str, dict] = {e.id: self._row(e) for e in expenses}
        self._payment_methods = payment_methods

    @classmethod
    def from_seed(cls, path: str, **kwargs) -> "ExpenseStore":
        profiles, categories, expenses = load_seed(path)
        logger.info(
            "Loaded seed %s: %d profiles, %d categories, %d expenses",
            path, len(profiles), len(categories), len(expenses),
        )
        return cls(profiles, categories, expenses, **kwargs)

    @staticmethod
    def _row(e: Expense) -> dict:
        return {
            "id": e.id,
            "user_id": e.user_id,
            "date": e.date,
            "amount": e.amount,
            "currency": e.currency,
            "category_id": e.category_id,
            "merchant": e.merchant,
            "payment_method": e.payment_method,
            "notes": e.notes,
        }

    def _visible_categories(self, user_id: str) -> List[Category]:
        return [c for c in self._categories.values() if c.is_default or c.user_id == user_id]

    def _own_expense_row(self, user_id: str, expense_id: str) -> dict:
        row = self._expenses.get(expense_id)
        if row is None or row["user_id"] != user_id:
            raise NotFoundError(f"Expense {expense_id} not found")
        return row

    def _visible_category(self, user_id: str, category_id: str) -> Category:
        cat = self._categories.get(category_id)
        if cat is None or not (cat.is_default or cat.user_id == user_id):
            raise NotFoundError(f"Category {category_id} not found")
        return cat

    # -- session / profiles

    def sign_in(self, email: str) -> Session:
        needle = (email or "").strip().lower()
        for p in self._profiles.values():
            if p.email.lower() == needle:
                logger.info("Signed in %s", p.id)
                return Session(user_id=p.id, email=p.email)
        raise AuthError(f"No account for {email!r}")

    def get_profile(self, user_id: str) -> Profile:
        profile = self._profiles.get(user_id)
        if profile is None:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile

    def update_profile(self, user_id: str, **changes) -> Profile:
        allowed = {"full_name", "currency", "notification_preferences"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Cannot update profile fields: {', '.join(sorted(unknown))}")
        with self._lock:
            profile = replace(self.get_profile(user_id), **changes)
            self._profiles[user_id] = profile
        return profile

    # -- categories

    def list_categories(self, user_id: str) -> Tuple[Category, ...]:
        with self._lock:
            return tuple(sorted(self._visible_categories(user_id), key=lambda c: c.name.lower()))

    def create_category(self, user_id: str, form: dict) -> Category:
        with self._lock:
            checked = validate_category_form(form, self._categories.values(), user_id)
            if checked.is_left():
                raise _form_error(checked.get_error())
            fields = checked.get_or_else(None)
            cat = Category(id=str(uuid4()), user_id=user_id, is_default=False, **fields)
            self._categories[cat.id] = cat
        logger.info("Created category %s (%s)", cat.id, cat.name)
        return cat

    def update_category(self, user_id: str, category_id: str, form: dict) -> Category:
        with self._lock:
            cat = self._editable_category(user_id, category_id)
            checked = validate_category_form(form, self._categories.values(), user_id, editing_id=category_id)
            if checked.is_left():
                raise _form_error(checked.get_error())
            updated = replace(cat, **checked.get_or_else(None))
            self._categories[category_id] = updated
        logger.info("Updated category %s", category_id)
        return updated

    def delete_category(self, user_id: str, category_id: str) -> None:
        with self._lock:
            self._editable_category(user_id, category_id)
            del self._categories[category_id]
            for row in self._expenses.values():
                if row["category_id"] == category_id:
                    row["category_id"] = None
        logger.info("Deleted category %s", category_id)

    def _editable_category(self, user_id: str, category_id: str) -> Category:
        cat = self._visible_category(user_id, category_id)
        editable = check_editable(cat)
        if editable.is_left():
            raise PermissionDeniedError(editable.get_error()["message"])
        return cat

    # -- expenses

    def list_expenses(self, user_id: str, limit: Optional[int] = None) -> Tuple[Expense, ...]:
        """User's expenses newest first, each joined with its category."""
        with self._lock:
            cats = self._visible_categories(user_id)
            rows = [r for r in self._expenses.values() if r["user_id"] == user_id]
            expenses = sort_by_date_desc(expense_from_row(r, cats) for r in rows)
        if limit is not None:
            expenses = expenses[:max(0, limit)]
        return expenses

    def get_expense(self, user_id: str, expense_id: str) -> Expense:
        with self._lock:
            return expense_from_row(self._own_expense_row(user_id, expense_id),
                                    self._visible_categories(user_id))

    def create_expense(self, user_id: str, form: dict) -> Expense:
        with self._lock:
            fields = self._checked_expense(user_id, form)
            currency = form.get("currency") or self._profiles.get(user_id, Profile(user_id, "")).currency
            row = {"id": str(uuid4()), "user_id": user_id, "currency": currency, **fields}
            self._expenses[row["id"]] = row
        logger.info("Created expense %s", row["id"])
        return self.get_expense(user_id, row["id"])

    def update_expense(self, user_id: str, expense_id: str, form: dict) -> Expense:
        with self._lock:
            row = self._own_expense_row(user_id, expense_id)
            row.update(self._checked_expense(user_id, form))
            if form.get("currency"):
                row["currency"] = form["currency"]
        logger.info("Updated expense %s", expense_id)
        return self.get_expense(user_id, expense_id)

    def delete_expense(self, user_id: str, expense_id: str) -> None:
        with self._lock:
            self._own_expense_row(user_id, expense_id)
            del self._expenses[expense_id]
        logger.info("Deleted expense %s", expense_id)

    def _checked_expense(self, user_id: str, form: dict) -> dict:
        kwargs = {"payment_methods": self._payment_methods} if self._payment_methods else {}
        checked = validate_expense_form(form, **kwargs)
        if checked.is_left():
            raise _form_error(checked.get_error())
        fields = checked.get_or_else(None)
        if fields["category_id"] is not None:
            self._visible_category(user_id, fields["category_id"])
        fields["date"] = fields["date"].isoformat()
        return fields


def _form_error(error: dict) -> Exception:
    if error.get("error") == "duplicate_name":
        return DuplicateError(error["message"])
    return ValidationError(error["message"], field=error.get("field", ""))

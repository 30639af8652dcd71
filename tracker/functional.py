import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Generic, Iterable, Optional, TypeVar

from tracker.domain import Category, RawAmount, RawDate

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')

PAYMENT_METHODS = ("card", "cash", "bank_transfer", "mobile_payment")

_AMOUNT_NOISE = re.compile(r"[\s,$€£¥]")
# amounts of 10**12 or more are treated as malformed
MAX_AMOUNT_EXPONENT = 11


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Left(self._error)

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def parse_amount(value: RawAmount) -> Maybe[Decimal]:
    """Coerce a stored amount to Decimal.

    Accepts Decimal, int, float and numeric strings such as "1,234.50" or
    "$12". Booleans, non-numeric strings, NaN, infinities and magnitudes
    of 10**12 or more give Nothing.
    """
    if value is None or isinstance(value, bool):
        return Nothing()
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = _AMOUNT_NOISE.sub("", value)
        if not cleaned:
            return Nothing()
        try:
            parsed = Decimal(cleaned)
        except InvalidOperation:
            return Nothing()
    else:
        return Nothing()

    if not parsed.is_finite():
        return Nothing()
    if parsed and parsed.adjusted() > MAX_AMOUNT_EXPONENT:
        return Nothing()
    return Some(parsed)


def parse_day(value: RawDate) -> Maybe[date]:
    """Reduce a date, datetime or ISO string to its calendar day."""
    if isinstance(value, datetime):
        return Some(value.date())
    if isinstance(value, date):
        return Some(value)
    if isinstance(value, str):
        try:
            return Some(date.fromisoformat(value.strip()[:10]))
        except ValueError:
            return Nothing()
    return Nothing()


def safe_category(cats: Iterable[Category], cat_id: Optional[str]) -> Maybe[Category]:
    if not cat_id:
        return Nothing()
    for cat in cats:
        if cat.id == cat_id:
            return Some(cat)
    return Nothing()


def _blank_to_none(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_expense_form(
    form: dict,
    payment_methods: tuple[str, ...] = PAYMENT_METHODS,
) -> Either[dict, dict]:
    """Check an add/edit expense form and return the cleaned fields."""
    if form.get("date") in (None, "") or form.get("amount") in (None, ""):
        return Left({
            "error": "missing_required",
            "message": "Please fill in all required fields",
            "field": "date" if form.get("date") in (None, "") else "amount",
        })

    day = parse_day(form["date"])
    if day.is_none():
        return Left({
            "error": "invalid_date",
            "message": f"Invalid date: {form['date']}",
            "field": "date",
        })

    amount = parse_amount(form["amount"])
    if amount.is_none():
        return Left({
            "error": "invalid_amount",
            "message": f"Amount must be a number, got {form['amount']!r}",
            "field": "amount",
        })
    if amount.get_or_else(Decimal("0")) < 0:
        return Left({
            "error": "negative_amount",
            "message": "Amount cannot be negative",
            "field": "amount",
        })

    method = _blank_to_none(form.get("payment_method"))
    if method is not None and method not in payment_methods:
        return Left({
            "error": "invalid_payment_method",
            "message": f"Unknown payment method: {method}",
            "field": "payment_method",
        })

    return Right({
        "date": day.get_or_else(None),
        "amount": amount.get_or_else(None),
        "category_id": _blank_to_none(form.get("category_id")),
        "merchant": _blank_to_none(form.get("merchant")),
        "payment_method": method,
        "notes": _blank_to_none(form.get("notes")),
    })


def check_editable(category: Category) -> Either[dict, Category]:
    if category.is_default:
        return Left({
            "error": "default_category",
            "message": "Default categories cannot be edited or deleted",
            "category_id": category.id,
        })
    return Right(category)


def validate_category_form(
    form: dict,
    existing: Iterable[Category],
    user_id: str,
    editing_id: Optional[str] = None,
) -> Either[dict, dict]:
    """Names are trimmed and must be unique among the user's own categories."""
    name = (form.get("name") or "").strip()
    if not name:
        return Left({
            "error": "missing_name",
            "message": "Please enter a category name",
            "field": "name",
        })

    clash = any(
        c.user_id == user_id and c.name == name and c.id != editing_id
        for c in existing
    )
    if clash:
        return Left({
            "error": "duplicate_name",
            "message": f"A category named {name!r} already exists",
            "field": "name",
        })

    return Right({
        "name": name,
        "color": form.get("color") or "#14b8a6",
        "icon": form.get("icon") or "💰",
    })

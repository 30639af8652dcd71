from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Union

# amounts as they arrive from the store; coerced with parse_amount
RawAmount = Union[Decimal, int, float, str, None]
RawDate = Union[date, str, None]


@dataclass(frozen=True)
class CategoryRef:
    name: str
    color: str
    icon: str = ""


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str
    icon: str
    is_default: bool = False
    user_id: Optional[str] = None   # None for shared defaults

    def ref(self) -> CategoryRef:
        return CategoryRef(name=self.name, color=self.color, icon=self.icon)


@dataclass(frozen=True)
class Expense:
    id: str
    date: RawDate                   # "2024-03-10" or date/datetime
    amount: RawAmount
    currency: str = "USD"
    category: Optional[CategoryRef] = None
    category_id: Optional[str] = None
    merchant: Optional[str] = None
    payment_method: Optional[str] = None   # card, cash, bank_transfer, mobile_payment
    notes: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class Profile:
    id: str
    email: str
    full_name: str = ""
    currency: str = "USD"
    notification_preferences: dict = field(default_factory=lambda: {"email": True, "in_app": True})


@dataclass(frozen=True)
class CategorySlice:
    name: str
    total: Decimal
    color: str


@dataclass(frozen=True)
class DailyPoint:
    day: date
    label: str      # weekday short name, e.g. "Mon"
    total: Decimal


@dataclass(frozen=True)
class InsightBundle:
    monthly_total: Decimal
    previous_total: Decimal
    percent_change: Optional[Decimal]   # None when there is no previous-month spending
    category_breakdown: tuple[CategorySlice, ...]
    daily_trend: tuple[DailyPoint, ...]
    transaction_count: int = 0
    average_per_day: Decimal = Decimal("0")
    top_category: Optional[CategorySlice] = None

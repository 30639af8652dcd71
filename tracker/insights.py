"""Dashboard insight computation.

compute_insights() is a pure function of (expenses, now): it never reads the
clock, never mutates its input and never raises for a bad record. Records
with a malformed amount contribute zero; records with an unparseable date
land in no month and no trend bucket.
"""
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional, Sequence, Union

from tracker.domain import CategoryRef, CategorySlice, DailyPoint, Expense, InsightBundle
from tracker.functional import parse_amount, parse_day
from tracker.logger import get_logger

logger = get_logger("insights")

UNCATEGORIZED = CategoryRef(name="Uncategorized", color="#6b7280")
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
TREND_DAYS = 7

ZERO = Decimal("0")
ONE_PLACE = Decimal("0.1")
CENTS = Decimal("0.01")


def _today(now: Union[date, datetime]) -> date:
    return now.date() if isinstance(now, datetime) else now


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


# (expense, calendar day or None, amount) parsed once per call
Row = tuple[Expense, Optional[date], Decimal]


def amount_of(e: Expense) -> Decimal:
    parsed = parse_amount(e.amount)
    if parsed.is_none():
        logger.warning("Expense %s has malformed amount %r; counting it as zero", e.id, e.amount)
    return parsed.get_or_else(ZERO)


def _rows(trans: Iterable[Expense]) -> list[Row]:
    return [(e, parse_day(e.date).get_or_else(None), amount_of(e)) for e in trans]


def _round(value: Decimal, places: Decimal) -> Decimal:
    try:
        return value.quantize(places, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logger.warning("Cannot round %s to %s; keeping it unrounded", value, places)
        return value


def percent_change(current: Decimal, previous: Decimal) -> Optional[Decimal]:
    """Month-over-month change rounded to one place, or None without a baseline."""
    if previous <= 0:
        return None
    return _round((current - previous) / previous * 100, ONE_PLACE)


def _breakdown(rows: Iterable[Row], fallback: CategoryRef) -> tuple[CategorySlice, ...]:
    totals: dict[str, Decimal] = {}
    colors: dict[str, str] = {}
    for e, _, amount in rows:
        ref = e.category or fallback
        if ref.name not in totals:
            totals[ref.name] = ZERO
            colors[ref.name] = ref.color
        totals[ref.name] += amount
    return tuple(CategorySlice(name=name, total=total, color=colors[name])
                 for name, total in totals.items())


def category_breakdown(
    trans: Iterable[Expense], fallback: CategoryRef = UNCATEGORIZED
) -> tuple[CategorySlice, ...]:
    """Totals per category name in first-seen order.

    A bucket keeps the colour of the first expense that created it; later
    expenses with the same name add to it without moving it.
    """
    return _breakdown(_rows(trans), fallback)


def _trend(rows: Iterable[Row], today: date, days: int) -> tuple[DailyPoint, ...]:
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    totals = {d: ZERO for d in window}
    for _, day, amount in rows:
        if day in totals:
            totals[day] += amount
    return tuple(DailyPoint(day=d, label=WEEKDAY_LABELS[d.weekday()], total=totals[d]) for d in window)


def daily_trend(trans: Iterable[Expense], today: date, days: int = TREND_DAYS) -> tuple[DailyPoint, ...]:
    return _trend(_rows(trans), today, days)


def top_category(breakdown: Sequence[CategorySlice]) -> Optional[CategorySlice]:
    best = None
    for s in breakdown:
        if best is None or s.total > best.total:
            best = s
    return best


def compute_insights(
    expenses: Iterable[Expense],
    now: Union[date, datetime],
    fallback: CategoryRef = UNCATEGORIZED,
) -> InsightBundle:
    today = _today(now)
    prev_year, prev_month = previous_month(today.year, today.month)

    rows = _rows(expenses)
    this_month: list[Row] = []
    last_month: list[Row] = []
    for row in rows:
        e, day, _ = row
        if day is None:
            logger.warning("Expense %s has unparseable date %r; skipping it", e.id, e.date)
            continue
        if (day.year, day.month) == (today.year, today.month):
            this_month.append(row)
        elif (day.year, day.month) == (prev_year, prev_month):
            last_month.append(row)

    breakdown = _breakdown(this_month, fallback)
    # the breakdown partitions this_month, so its totals sum to the monthly total
    monthly_total = sum((s.total for s in breakdown), ZERO)
    previous_total = sum((amount for _, _, amount in last_month), ZERO)

    average = ZERO
    if this_month:
        average = _round(monthly_total / today.day, CENTS)

    logger.debug(
        "Computed insights for %s: %d this month, %d last month, %d categories",
        today.isoformat(), len(this_month), len(last_month), len(breakdown),
    )

    return InsightBundle(
        monthly_total=monthly_total,
        previous_total=previous_total,
        percent_change=percent_change(monthly_total, previous_total),
        category_breakdown=breakdown,
        daily_trend=_trend(rows, today, TREND_DAYS),
        transaction_count=len(this_month),
        average_per_day=average,
        top_category=top_category(breakdown),
    )

import asyncio
from dataclasses import dataclass
from typing import Optional, Tuple

from tracker.domain import Category, Expense
from tracker.exceptions import FetchError, StoreError
from tracker.logger import get_logger
from tracker.store import ExpenseStore

logger = get_logger("fetch")


@dataclass(frozen=True)
class DashboardData:
    expenses: Tuple[Expense, ...]
    categories: Tuple[Category, ...]


async def load_dashboard(store: ExpenseStore, user_id: str, limit: Optional[int] = 100) -> DashboardData:
    """Fetch the user's latest expenses and visible categories in parallel.

    Store failures are re-raised as FetchError so the caller can keep the
    data it already shows.
    """
    try:
        expenses, categories = await asyncio.gather(
            asyncio.to_thread(store.list_expenses, user_id, limit),
            asyncio.to_thread(store.list_categories, user_id),
        )
    except StoreError as e:
        logger.error("Loading dashboard data failed: %s", e)
        raise FetchError(str(e)) from e

    logger.debug("Fetched %d expenses and %d categories", len(expenses), len(categories))
    return DashboardData(expenses=expenses, categories=categories)


def load_dashboard_sync(store: ExpenseStore, user_id: str, limit: Optional[int] = 100) -> DashboardData:
    return asyncio.run(load_dashboard(store, user_id, limit))

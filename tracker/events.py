from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional

from tracker.logger import get_logger

__all__ = [
    'event_bus', 'Event', 'EventBus', 'register_default_handlers', 'should_toast',
    'EXPENSE_ADDED', 'EXPENSE_UPDATED', 'EXPENSE_DELETED',
    'CATEGORY_ADDED', 'CATEGORY_UPDATED', 'CATEGORY_DELETED',
    'PROFILE_UPDATED', 'OPERATION_FAILED',
]

logger = get_logger("events")


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if name not in self._subscribers:
            self._subscribers[name] = []
        if handler not in self._subscribers[name]:
            self._subscribers[name].append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )
        logger.debug("Publishing %s to %d handler(s)", name, len(self._subscribers[name]))

        results = []
        for handler in self._subscribers[name]:
            result = handler(event, payload)
            results.append(result)
        return results

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if name in self._subscribers:
            if handler in self._subscribers[name]:
                self._subscribers[name].remove(handler)


EXPENSE_ADDED = "EXPENSE_ADDED"
EXPENSE_UPDATED = "EXPENSE_UPDATED"
EXPENSE_DELETED = "EXPENSE_DELETED"
CATEGORY_ADDED = "CATEGORY_ADDED"
CATEGORY_UPDATED = "CATEGORY_UPDATED"
CATEGORY_DELETED = "CATEGORY_DELETED"
PROFILE_UPDATED = "PROFILE_UPDATED"
OPERATION_FAILED = "OPERATION_FAILED"

_SUCCESS_MESSAGES = {
    EXPENSE_ADDED: "Expense added successfully",
    EXPENSE_UPDATED: "Expense updated successfully",
    EXPENSE_DELETED: "Expense deleted successfully",
    CATEGORY_ADDED: "Category created successfully",
    CATEGORY_UPDATED: "Category updated successfully",
    CATEGORY_DELETED: "Category deleted successfully",
}

event_bus = EventBus()


def success_notification_handler(event: Event, payload: dict) -> dict:
    return {
        "title": "Success",
        "description": _SUCCESS_MESSAGES.get(event.name, "Saved"),
        "variant": "default",
    }


def profile_notification_handler(event: Event, payload: dict) -> dict:
    if "currency" in payload:
        return {
            "title": "Currency updated",
            "description": f"Default currency set to {payload['currency']}",
            "variant": "default",
        }
    if "notification_preferences" in payload:
        return {
            "title": "Notifications updated",
            "description": "Your notification preferences have been saved",
            "variant": "default",
        }
    if "theme" in payload:
        return {
            "title": "Theme updated",
            "description": f"Switched to {payload['theme']} mode",
            "variant": "default",
        }
    return {}


def failure_notification_handler(event: Event, payload: dict) -> dict:
    return {
        "title": payload.get("title", "Error"),
        "description": payload.get("message", "Something went wrong"),
        "variant": "destructive",
    }


def should_toast(result: dict, preferences: Optional[dict] = None) -> bool:
    """Failures always show; other notifications follow the in-app preference."""
    if not result:
        return False
    if result.get("variant") == "destructive":
        return True
    return bool((preferences or {}).get("in_app", True))


def register_default_handlers(bus: EventBus = event_bus) -> EventBus:
    for name in _SUCCESS_MESSAGES:
        bus.subscribe(name, success_notification_handler)
    bus.subscribe(PROFILE_UPDATED, profile_notification_handler)
    bus.subscribe(OPERATION_FAILED, failure_notification_handler)
    return bus


register_default_handlers()

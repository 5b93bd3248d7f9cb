"""
Event Bus for ledger change notifications

Other parts of the application publish expense/budget/currency changes;
subscribers (report orchestrators) re-run their pipelines on receipt.
Notifications carry no payload.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[[], Awaitable[None]]


class LedgerEvent(str, Enum):
    EXPENSE_ADDED = "expenseAdded"
    EXPENSE_UPDATED = "expenseUpdated"
    EXPENSE_DELETED = "expenseDeleted"
    BUDGET_ADDED = "budgetAdded"
    BUDGET_UPDATED = "budgetUpdated"
    BUDGET_DELETED = "budgetDeleted"
    CURRENCY_CHANGED = "currencyChanged"


class EventBus:
    """Registry of async handlers keyed by event kind"""

    def __init__(self):
        self._handlers: Dict[LedgerEvent, List[Handler]] = {}

    def subscribe(self, event: LedgerEvent, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a callable that removes it again"""
        event = LedgerEvent(event)
        self._handlers.setdefault(event, []).append(handler)

        def unsubscribe():
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def handler_count(self, event: LedgerEvent = None) -> int:
        if event is not None:
            return len(self._handlers.get(LedgerEvent(event), []))
        return sum(len(h) for h in self._handlers.values())

    async def publish(self, event: LedgerEvent):
        """Run every handler for the event; a failing handler does not stop the rest"""
        event = LedgerEvent(event)
        # Copy so handlers may unsubscribe while we iterate
        handlers = list(self._handlers.get(event, []))
        logger.debug(f"Publishing {event.value} to {len(handlers)} handler(s)")
        for handler in handlers:
            try:
                await handler()
            except Exception as e:
                logger.warning(f"Handler for {event.value} failed: {e}", exc_info=True)


# Global singleton instance
event_bus = EventBus()

"""Canned chat responses about the fleet.

Answers are fixed templates filled with store counts; there is no language
understanding beyond keyword matching.
"""

from typing import Optional

from .dashboard import get_dashboard_stats
from .status import PartStatus

GREETING = (
    "Hello! I am your fleet assistant. Ask me about your vehicles, "
    "maintenance, spare parts, or use one of the quick actions."
)

DEFAULT_RESPONSE = (
    "I can help with vehicle information, maintenance alerts, the parts "
    "inventory or scheduling an intervention. What would you like to know?"
)

HELP_RESPONSE = (
    "I can assist with:\n"
    "- vehicle status and tracking\n"
    "- maintenance planning\n"
    "- spare-parts inventory\n"
    "- cost analysis\n"
    "- alerts and notifications\n"
    "Use a quick action or ask a specific question."
)

SCHEDULE_RESPONSE = (
    "To schedule maintenance, please give me the vehicle's plate and the "
    "type of intervention you need."
)

COST_RESPONSE = (
    "Maintenance costs are recorded on every service entry. Open the "
    "maintenance history to see the cost of each intervention and the total."
)

THANKS_RESPONSE = "You're welcome! Anything else about your fleet?"

MAX_LISTED_ALERTS = 3


def vehicle_status_response(store) -> str:
    stats = get_dashboard_stats(store)
    return (
        f"You currently have {stats.operational} operational vehicles, "
        f"{stats.maintenance_due} due for maintenance and "
        f"{stats.in_repair} in repair."
    )


def maintenance_alerts_response(store) -> str:
    unread = [a for a in store.get_alerts() if not a.is_read]
    if not unread:
        return "No pending maintenance alerts at the moment."
    listed = ", ".join(a.message for a in unread[:MAX_LISTED_ALERTS])
    return f"You have {len(unread)} maintenance alerts: {listed}."


def parts_inventory_response(store) -> str:
    statuses = [part.status for part in store.get_parts()]
    in_stock = statuses.count(PartStatus.IN_STOCK)
    low_stock = statuses.count(PartStatus.LOW_STOCK)
    out_of_stock = statuses.count(PartStatus.OUT_OF_STOCK)

    response = f"Current stock: {in_stock} parts in stock"
    if low_stock:
        response += f", {low_stock} parts low on stock"
    if out_of_stock:
        response += f", {out_of_stock} parts out of stock"
    return response + "."


ACTIONS = {
    "vehicle-status": vehicle_status_response,
    "maintenance-alerts": maintenance_alerts_response,
    "parts-inventory": parts_inventory_response,
    "schedule-maintenance": lambda store: SCHEDULE_RESPONSE,
}

# First matching keyword group wins.
KEYWORDS = [
    (("vehicle", "car", "truck", "van"), vehicle_status_response),
    (("maintenance", "alert"), maintenance_alerts_response),
    (("part", "stock", "inventory"), parts_inventory_response),
    (("schedule", "book"), lambda store: SCHEDULE_RESPONSE),
    (("cost", "budget", "price"), lambda store: COST_RESPONSE),
    (("hello", "hi ", "hey"), lambda store: GREETING),
    (("thank",), lambda store: THANKS_RESPONSE),
    (("help",), lambda store: HELP_RESPONSE),
]


def respond(store, message: Optional[str] = None, action: Optional[str] = None) -> str:
    """Answer a quick action, else a keyword in the message, else a default."""
    if action in ACTIONS:
        return ACTIONS[action](store)

    text = f"{(message or '').lower()} "
    for keywords, handler in KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return handler(store)
    return DEFAULT_RESPONSE

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

TICKET_STATE_OPEN = "open"
TICKET_STATE_CLOSING = "closing"

TICKET_TOPIC_PREFIX = "ticket"
MAX_CHANNEL_NAME_LENGTH = 100

SETUP_CONFIRM_YES = "setup-confirm:yes"
SETUP_CONFIRM_NO = "setup-confirm:no"
TICKET_OPEN_PREFIX = "ticket-open"
TICKET_CLOSE_ID = "ticket-close:now"

SETUP_REASON = "Server rebuild by setup command"
TICKET_CLOSE_REASON = "Ticket closed by button"

CLEAR_MIN = 1
CLEAR_MAX = 100
# Discord only bulk-deletes messages younger than this.
BULK_DELETE_MAX_AGE = timedelta(days=14)


@dataclass(frozen=True, slots=True)
class TicketType:
    key: str
    channel_prefix: str
    label: str
    emoji: str
    style: str


TICKET_TYPES: dict[str, TicketType] = {
    "general": TicketType("general", "ticket", "General Support", "🛠", "primary"),
    "bug": TicketType("bug", "bug", "Bug Report", "🐞", "secondary"),
    "partner": TicketType("partner", "partner", "Partnership", "🤝", "success"),
}

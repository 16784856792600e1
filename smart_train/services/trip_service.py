"""Trip progress derived from a ticket's scheduled start and duration."""
import math
from datetime import datetime, timezone

MS_PER_MINUTE = 60000


def utcnow():
    return datetime.now(timezone.utc)


def ensure_utc(value):
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_progress(trip_start, trip_duration_minutes, now=None):
    """Percentage of the scheduled trip that has elapsed at ``now``.

    Capped at 100 once the trip is over. Before departure the result is
    floored at 0; use :func:`has_departed` to tell "not yet departed" apart
    from "just departed".
    """
    now = ensure_utc(now or utcnow())
    start = ensure_utc(trip_start)

    elapsed_ms = (now - start).total_seconds() * 1000
    total_ms = trip_duration_minutes * MS_PER_MINUTE

    # halves round up, not to even
    progress = math.floor(elapsed_ms / total_ms * 100 + 0.5)
    return max(0, min(progress, 100))


def has_departed(trip_start, now=None):
    return ensure_utc(now or utcnow()) >= ensure_utc(trip_start)


def ticket_progress(ticket, now=None):
    now = now or utcnow()
    return {
        "ticket_id": ticket.id,
        "from": ticket.from_station,
        "to": ticket.to_station,
        "progress": compute_progress(ticket.trip_start, ticket.trip_duration_minutes, now),
        "departed": has_departed(ticket.trip_start, now),
    }

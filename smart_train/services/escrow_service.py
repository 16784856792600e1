"""Escrow workflow around ticket sales.

A purchase moves the seller's net proceeds (price minus the flat platform
fee) into their locked balance and marks the ticket sold. The release sweep
later merges the locked balance into the available balance once half of the
scheduled trip has elapsed. Sales are final: there is no path back from
``sold`` and no refund.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from smart_train.extensions import db
from smart_train.models.ticket import Ticket, STATUS_AVAILABLE
from smart_train.services.ticket_service import (
    mark_ticket_sold,
    mark_ticket_released,
    pending_release_rows,
)
from smart_train.services.trip_service import ensure_utc, utcnow
from smart_train.services.wallet_service import lock_funds, release_locked_funds
from smart_train.utils.exceptions import ServiceError, StorageError, TicketUnavailable

logger = logging.getLogger(__name__)

PURCHASE_FINAL_MESSAGE = "Purchase completed. No cancellation or refund allowed."


def net_proceeds(price, platform_fee):
    return Decimal(price) - Decimal(platform_fee)


def purchase_ticket(ticket_id, buyer_id, platform_fee=None):
    """Sell an available ticket to ``buyer_id`` and lock the seller's proceeds.

    The buyer's wallet is not touched; payment is either pre-settled or
    confirmed by the payment provider before this is called.
    """
    if platform_fee is None:
        platform_fee = current_app.config["PLATFORM_FEE"]

    try:
        ticket = db.session.get(Ticket, ticket_id)
        if ticket is None or ticket.status != STATUS_AVAILABLE:
            raise TicketUnavailable(ticket_id)

        seller_id = ticket.seller_id
        net = net_proceeds(ticket.price, platform_fee)

        # the read above is advisory; this conditional update decides the race
        if not mark_ticket_sold(ticket_id, buyer_id):
            raise TicketUnavailable(ticket_id)

        lock_funds(seller_id, net, ticket_id)
        db.session.commit()
    except ServiceError:
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Purchase of ticket %s failed", ticket_id)
        raise StorageError()

    logger.info("Ticket %s sold to %s, %s locked for seller %s", ticket_id, buyer_id, net, seller_id)
    return {"ticket_id": ticket_id, "buyer_id": buyer_id, "locked_amount": net}


def release_at(trip_start, trip_duration_minutes):
    """Moment the seller's escrow becomes releasable: half way through the trip."""
    return ensure_utc(trip_start) + timedelta(minutes=trip_duration_minutes / 2)


def release_ticket(ticket_id, seller_id):
    """Release one ticket's escrow in its own transaction.

    Returns the amount moved, or None if another sweep released it first.
    """
    if not mark_ticket_released(ticket_id):
        db.session.rollback()
        return None

    amount = release_locked_funds(seller_id, ticket_id)
    db.session.commit()
    return amount


def release_sweep(now=None):
    """Release escrow for every sold ticket past its half-trip mark.

    Safe to run concurrently with itself: each release is guarded by the
    ``payment_released`` flag, so a ticket is credited at most once. A failure
    on one ticket is logged and the sweep moves on.
    """
    now = ensure_utc(now or utcnow())
    summary = {"scanned": 0, "released": 0, "skipped": 0, "failed": 0}

    rows = pending_release_rows()
    # end the read transaction so each release starts fresh
    db.session.commit()
    summary["scanned"] = len(rows)

    for ticket_id, seller_id, trip_start, duration in rows:
        if now < release_at(trip_start, duration):
            summary["skipped"] += 1
            continue

        try:
            amount = release_ticket(ticket_id, seller_id)
        except (SQLAlchemyError, ServiceError):
            db.session.rollback()
            summary["failed"] += 1
            logger.exception("Escrow release failed for ticket %s", ticket_id)
            continue

        if amount is None:
            summary["skipped"] += 1
            continue

        summary["released"] += 1
        logger.info("Released %s to seller %s for ticket %s", amount, seller_id, ticket_id)

    if summary["released"] or summary["failed"]:
        logger.info(
            "Release sweep: %(scanned)d scanned, %(released)d released, %(failed)d failed",
            summary,
        )
    return summary

from decimal import Decimal, InvalidOperation
from dateutil import parser
from sqlalchemy import update
from smart_train.extensions import db
from smart_train.models.ticket import Ticket, STATUS_AVAILABLE, STATUS_SOLD
from smart_train.services.trip_service import ensure_utc
from smart_train.utils.exceptions import ValidationError, NotFound

GPS_REQUIRED_MESSAGE = "Access to GPS is required for security"
# largest value Ticket.price (Numeric(10, 2)) can hold
MAX_PRICE = Decimal("99999999.99")
CENT = Decimal("0.01")
MAX_TRIP_MINUTES = 7 * 24 * 60


def whole_number(value, field, message):
    """Parse an integer input, refusing fractions instead of truncating them."""
    if isinstance(value, bool):
        raise ValidationError(message, {"field": field})
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(message, {"field": field})
    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationError(message, {"field": field})
    return int(number)


def require_location(data):
    lat = data.get("lat")
    lng = data.get("lng")
    if lat in (None, "") or lng in (None, ""):
        raise ValidationError(GPS_REQUIRED_MESSAGE, code="GPS_REQUIRED", status=403)
    try:
        return float(lat), float(lng)
    except (TypeError, ValueError):
        raise ValidationError("Invalid coordinates", {"field": "lat/lng"})


def validate_listing(data, platform_fee, max_count):
    """Check a listing request and return normalized values.

    Raises before anything touches the database.
    """
    require_location(data)

    if not data.get("image_url"):
        raise ValidationError("Ticket image required", {"field": "image_url"})

    from_station = (data.get("from_station") or "").strip()
    to_station = (data.get("to_station") or "").strip()
    if not from_station or not to_station:
        raise ValidationError("Departure and arrival stations are required", {"field": "from_station/to_station"})

    try:
        price = Decimal(str(data.get("price")))
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid price", {"field": "price"})
    if not price.is_finite() or price <= 0:
        raise ValidationError("Price must be positive", {"field": "price"})
    if price > MAX_PRICE:
        raise ValidationError(f"Price cannot exceed {MAX_PRICE}", {"field": "price"})
    if price != price.quantize(CENT):
        raise ValidationError("Price cannot have more than 2 decimal places", {"field": "price"})
    price = price.quantize(CENT)
    if price <= platform_fee:
        raise ValidationError(
            "Price must exceed the platform fee",
            {"field": "price", "platform_fee": str(platform_fee)},
        )

    count = whole_number(data.get("count", 1), "count", "Invalid ticket count")
    if count < 1 or count > max_count:
        raise ValidationError(f"Ticket count must be between 1 and {max_count}", {"field": "count"})

    raw_start = data.get("trip_start")
    if not raw_start:
        raise ValidationError("Trip start is required", {"field": "trip_start"})
    try:
        trip_start = ensure_utc(parser.isoparse(str(raw_start)))
    except (ValueError, OverflowError):
        raise ValidationError("Invalid trip start", {"field": "trip_start"})

    duration = whole_number(
        data.get("trip_duration_minutes"), "trip_duration_minutes", "Trip duration must be a whole number of minutes"
    )
    if duration <= 0:
        raise ValidationError("Trip duration must be positive", {"field": "trip_duration_minutes"})
    if duration > MAX_TRIP_MINUTES:
        raise ValidationError(
            f"Trip duration cannot exceed {MAX_TRIP_MINUTES} minutes", {"field": "trip_duration_minutes"}
        )

    return {
        "from_station": from_station,
        "to_station": to_station,
        "price": price,
        "type": data.get("type"),
        "image_url": data["image_url"],
        "trip_start": trip_start,
        "trip_duration_minutes": duration,
    }, count


def create_tickets(seller_id, listing, count):
    """Insert ``count`` identical tickets for one seller."""
    tickets = [Ticket(seller_id=seller_id, **listing) for _ in range(count)]
    db.session.add_all(tickets)
    db.session.commit()
    return tickets


def get_ticket(ticket_id):
    ticket = db.session.get(Ticket, ticket_id)
    if not ticket:
        raise NotFound("Ticket not found")
    return ticket


def available_tickets_query(from_station=None, to_station=None):
    q = Ticket.query.filter(Ticket.status == STATUS_AVAILABLE)
    if from_station:
        q = q.filter(Ticket.from_station.ilike(f"%{from_station}%"))
    if to_station:
        q = q.filter(Ticket.to_station.ilike(f"%{to_station}%"))
    return q.order_by(Ticket.trip_start.asc(), Ticket.id)


def user_tickets_query(user_id, role="seller"):
    if role == "seller":
        q = Ticket.query.filter(Ticket.seller_id == user_id)
    elif role == "buyer":
        q = Ticket.query.filter(Ticket.buyer_id == user_id)
    else:
        raise ValidationError("Role must be seller or buyer", {"field": "role"})
    return q.order_by(Ticket.created_at.desc(), Ticket.id)


def mark_ticket_sold(ticket_id, buyer_id):
    """Compare-and-set available -> sold. False when someone else got there first."""
    result = db.session.execute(
        update(Ticket)
        .where(Ticket.id == ticket_id, Ticket.status == STATUS_AVAILABLE)
        .values(status=STATUS_SOLD, buyer_id=buyer_id)
    )
    return result.rowcount == 1


def mark_ticket_released(ticket_id):
    """Compare-and-set payment_released false -> true on a sold ticket."""
    result = db.session.execute(
        update(Ticket)
        .where(
            Ticket.id == ticket_id,
            Ticket.status == STATUS_SOLD,
            Ticket.payment_released.is_(False),
        )
        .values(payment_released=True)
    )
    return result.rowcount == 1


def pending_release_rows():
    return (
        db.session.query(
            Ticket.id,
            Ticket.seller_id,
            Ticket.trip_start,
            Ticket.trip_duration_minutes,
        )
        .filter(Ticket.status == STATUS_SOLD, Ticket.payment_released.is_(False))
        .order_by(Ticket.trip_start.asc())
        .all()
    )

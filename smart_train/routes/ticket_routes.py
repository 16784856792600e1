from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from smart_train.schemas.ticket_schema import ticket_schema, tickets_schema, ticket_list_schema
from smart_train.services.escrow_service import purchase_ticket, PURCHASE_FINAL_MESSAGE
from smart_train.services.ticket_service import (
    validate_listing,
    create_tickets,
    get_ticket,
    available_tickets_query,
    user_tickets_query,
)
from smart_train.utils.pagination import paginate_query, pagination_args
from smart_train.utils.response_formatter import success_response, error_response

bp = Blueprint("tickets", __name__, url_prefix="/api/v1/tickets")


# ------------------------------------------------------------
#  POST /tickets — list one or more identical tickets for sale
# ------------------------------------------------------------
@bp.route("", methods=["POST"])
@jwt_required()
def list_tickets_for_sale():
    uid = get_jwt_identity()
    data = request.get_json(silent=True) or {}

    listing, count = validate_listing(
        data,
        platform_fee=current_app.config["PLATFORM_FEE"],
        max_count=current_app.config["MAX_TICKETS_PER_LISTING"],
    )
    tickets = create_tickets(uid, listing, count)
    current_app.logger.info("User %s listed %d ticket(s) %s -> %s", uid, count, listing["from_station"], listing["to_station"])

    return success_response({
        "count": len(tickets),
        "tickets": tickets_schema.dump(tickets),
    }, status=201)


# ------------------------------------------------------------
#  GET /tickets — browse tickets still for sale
# ------------------------------------------------------------
@bp.route("", methods=["GET"])
@jwt_required()
def browse_tickets():
    page, limit = pagination_args()
    q = available_tickets_query(
        from_station=request.args.get("from"),
        to_station=request.args.get("to"),
    )
    items, meta = paginate_query(q, page, limit)

    return success_response({
        "tickets": ticket_list_schema.dump(items),
        "pagination": meta,
    })


@bp.route("/mine", methods=["GET"])
@jwt_required()
def my_tickets():
    uid = get_jwt_identity()
    page, limit = pagination_args()
    q = user_tickets_query(uid, role=request.args.get("role", "seller"))
    items, meta = paginate_query(q, page, limit)

    return success_response({
        "tickets": tickets_schema.dump(items),
        "pagination": meta,
    })


@bp.route("/<ticket_id>", methods=["GET"])
@jwt_required()
def ticket_detail(ticket_id):
    return success_response({"ticket": ticket_schema.dump(get_ticket(ticket_id))})


# ------------------------------------------------------------
#  POST /tickets/<id>/buy — settled purchase, final
# ------------------------------------------------------------
@bp.route("/<ticket_id>/buy", methods=["POST"])
@jwt_required()
def buy_ticket(ticket_id):
    if not current_app.config["ALLOW_DIRECT_PURCHASE"]:
        return error_response(
            "DIRECT_PURCHASE_DISABLED",
            "Use /api/v1/payments/checkout to pay for this ticket",
            status=403,
        )

    uid = get_jwt_identity()
    result = purchase_ticket(ticket_id, uid)

    return success_response({"ticket_id": result["ticket_id"]}, message=PURCHASE_FINAL_MESSAGE)

from flask import Blueprint
from flask_jwt_extended import jwt_required

from smart_train.services.ticket_service import get_ticket
from smart_train.services.trip_service import ticket_progress
from smart_train.utils.response_formatter import success_response

bp = Blueprint("trips", __name__, url_prefix="/api/v1/trips")


@bp.route("/<ticket_id>", methods=["GET"])
@jwt_required()
def track_trip(ticket_id):
    return success_response(ticket_progress(get_ticket(ticket_id)))

from marshmallow import fields
from smart_train.extensions import ma

class TicketSchema(ma.Schema):
    id = fields.String()
    seller_id = fields.String()
    buyer_id = fields.String(allow_none=True)
    from_station = fields.String()
    to_station = fields.String()
    price = fields.Decimal(places=2, as_string=True)
    type = fields.String(allow_none=True)
    image_url = fields.String()
    trip_start = fields.DateTime()
    trip_duration_minutes = fields.Integer()
    status = fields.String()
    payment_released = fields.Boolean()

class TicketListSchema(ma.Schema):
    id = fields.String()
    from_station = fields.String()
    to_station = fields.String()
    price = fields.Decimal(places=2, as_string=True)
    type = fields.String(allow_none=True)
    image_url = fields.String()
    trip_start = fields.DateTime()
    trip_duration_minutes = fields.Integer()

ticket_schema = TicketSchema()
tickets_schema = TicketSchema(many=True)
ticket_list_schema = TicketListSchema(many=True)

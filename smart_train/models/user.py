from smart_train.extensions import db
from datetime import datetime
import uuid

def gen_uuid(prefix=None):
    uid = str(uuid.uuid4())
    return f"{prefix}-{uid}" if prefix else uid

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(50), primary_key=True, default=lambda: gen_uuid("usr"))
    full_name = db.Column(db.String(255), nullable=False)
    national_id = db.Column(db.String(14), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    mobile = db.Column(db.String(32))
    address = db.Column(db.String(512))
    terms_accepted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "national_id": self.national_id,
            "mobile": self.mobile,
            "address": self.address,
            "terms_accepted": self.terms_accepted,
            "created_at": self.created_at.isoformat() + "Z" if self.created_at else None,
        }

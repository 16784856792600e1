from datetime import datetime, timedelta, timezone
from decimal import Decimal
import itertools

import pytest

from smart_train.main import create_app
from smart_train.extensions import db
from smart_train.models.ticket import Ticket
from smart_train.models.user import User
from smart_train.services.wallet_service import create_wallet, get_wallet
from smart_train.utils.auth_utils import hash_password, issue_access_token

_national_ids = itertools.count(29001010100001)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def now():
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
def make_user(app):
    def _make(full_name="Test Rider", password="123456"):
        user = User(
            full_name=full_name,
            national_id=str(next(_national_ids)),
            password_hash=hash_password(password),
            mobile="01000000000",
            address="Cairo",
            terms_accepted=True,
        )
        db.session.add(user)
        db.session.flush()
        create_wallet(user.id)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_ticket(app, now):
    def _make(seller, price="100", trip_start=None, duration=60, **overrides):
        fields = {
            "from_station": "Cairo",
            "to_station": "Alexandria",
            "type": "first",
            "image_url": "https://img.example/ticket.jpg",
        }
        fields.update(overrides)
        ticket = Ticket(
            seller_id=seller.id,
            price=Decimal(price),
            trip_start=trip_start or now + timedelta(hours=2),
            trip_duration_minutes=duration,
            **fields,
        )
        db.session.add(ticket)
        db.session.commit()
        return ticket
    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        return {"Authorization": f"Bearer {issue_access_token(user)}"}
    return _headers


@pytest.fixture
def wallet_of(app):
    def _wallet(user):
        db.session.expire_all()
        return get_wallet(user.id)
    return _wallet

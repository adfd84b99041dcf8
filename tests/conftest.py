import jwt
import pytest
import pytest_asyncio
from tortoise import Tortoise

from orderdesk.core import config
from orderdesk.core.db import MODELS_MODULES


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite schema for each test."""
    await Tortoise.init(db_url="sqlite://:memory:", modules={"models": MODELS_MODULES})
    await Tortoise.generate_schemas()
    yield
    await Tortoise._drop_databases()


def make_token(user_id="user-123", roles=("customer",), email="customer@example.com"):
    claims = {"id": user_id, "email": email, "roles": list(roles)}
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def auth_headers(user_id="user-123", roles=("customer",)):
    return {"Authorization": f"Bearer {make_token(user_id, roles)}"}


def staff_headers(user_id="staff-1"):
    return auth_headers(user_id, roles=(config.STAFF_ROLE,))


def order_payload(**overrides):
    """A valid pay-on-delivery submission; override any field per test."""
    payload = {
        "customer_name": "Ama Mensah",
        "customer_phone": "0241234567",
        "delivery_address": "12 Hospital Road, Tamale",
        "order_type": "delivery",
        "subtotal": 70.00,
        "delivery_fee": 10.00,
        "total": 80.00,
        "payment_method": "pay_on_delivery",
        "special_instructions": "Extra pepper",
        "items": [
            {"id": "menu-1", "name": "Jollof Rice", "quantity": 2, "price": 25.00},
            {"id": "menu-2", "name": "Kelewele", "quantity": 1, "price": 20.00},
        ],
    }
    payload.update(overrides)
    return payload

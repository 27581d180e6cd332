"""Shared fixtures: an app on in-memory SQLite, a test client and a guest."""

import pytest
from flask import Flask
from flask.testing import FlaskClient

from guests.guest import Guest
from src.config import TestConfig
from src.extensions import db
from src.main import create_app


@pytest.fixture
def app() -> Flask:
    """Create an application with a fresh schema."""
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()


@pytest.fixture
def guest(app: Flask) -> Guest:
    """Create a guest to bill."""
    guest = Guest(first_name="Asha", last_name="Rao", phone="9800000001", email="asha@example.com")
    db.session.add(guest)
    db.session.commit()
    return guest


@pytest.fixture
def room_line() -> dict:
    """One night in a room: 2 x 500 at 12% tax."""
    return {"category": "room", "description": "Deluxe room", "quantity": 2, "unit_price": 500, "tax_rate": 12}

import os
import sys

# Keep the module-level app off the on-disk database
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('SECRET_KEY', 'test-secret')

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import pytest

from app import create_app
from models import db
from ledger import accounts

PASSWORD = 'correct-horse'


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'PASSWORD_HASH_METHOD': 'pbkdf2:sha256:1000',
        'LOG_LEVEL': 'WARNING',
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = iter(range(1, 1000))

    def _make(name=None, email=None, password=PASSWORD):
        n = next(counter)
        return accounts.register(name or f'User {n}', email or f'user{n}@example.com', password)
    return _make


@pytest.fixture
def login(client, make_user):
    """Register a user and log the test client in as them. Returns the user id."""
    def _login(email='owner@example.com', password=PASSWORD):
        user_id = make_user(email=email, password=password)
        resp = client.post('/login', json={'email': email, 'password': password})
        assert resp.status_code == 200
        return user_id
    return _login

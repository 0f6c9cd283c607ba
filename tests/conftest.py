import os
import pytest
from datetime import datetime, timezone

# Set test env vars before importing app
os.environ['FF_AI_SUGGESTIONS'] = 'false'
os.environ['FF_DUPLICATE_DETECTION'] = 'true'

from factdesk import create_app
from factdesk.extensions import db as _db
from factdesk.models.claim import Claim
from factdesk.models.enums import Category, ClaimStatus, Priority, Role
from factdesk.models.user import User
from factdesk.utils.text import claim_fingerprint, title_from_text
from config import TestConfig


@pytest.fixture(scope='session')
def app():
    """Create app with test config."""
    app = create_app(TestConfig)
    return app


@pytest.fixture(autouse=True)
def setup_db(app):
    """Create tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    with app.app_context():
        yield _db.session


def _make_user(db_session, username, role):
    user = User(username=username, email=f'{username}@example.com', role=role)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def user(db_session):
    return _make_user(db_session, 'wanjiru', Role.USER)


@pytest.fixture
def other_user(db_session):
    return _make_user(db_session, 'otieno', Role.USER)


@pytest.fixture
def fact_checker(db_session):
    return _make_user(db_session, 'checker', Role.FACT_CHECKER)


@pytest.fixture
def second_checker(db_session):
    return _make_user(db_session, 'checker2', Role.FACT_CHECKER)


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, 'admin', Role.ADMIN)


@pytest.fixture
def make_claim(db_session, user):
    """Insert a claim row directly, bypassing submission side effects."""
    def _make(text='The new bypass opens next month', status=ClaimStatus.PENDING,
              priority=Priority.MEDIUM, owner=None, created_at=None, **fields):
        claim = Claim(
            user_id=(owner or user).id,
            title=title_from_text(text),
            text=text,
            text_hash=claim_fingerprint(text),
            category=Category.POLITICS,
            status=status,
            priority=priority,
            created_at=created_at or datetime.now(timezone.utc),
            **fields,
        )
        db_session.add(claim)
        db_session.commit()
        return claim
    return _make


@pytest.fixture
def auth():
    """Upstream identity headers for a user."""
    return lambda user: {'X-User-Id': str(user.id), 'X-User-Role': user.role.value}

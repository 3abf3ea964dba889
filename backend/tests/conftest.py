"""
Pytest fixtures for tourops backend tests.

Each test gets its own application bound to a fresh in-memory SQLite
database, plus an admin and a staff user with Bearer headers.
"""

from decimal import Decimal

import pytest

from tourops import create_app
from tourops.extensions import db
from tourops.models import Invoice, InvoiceItem, ReservationSubmission, Task
from tourops.services.auth_service import create_user
from tourops.services.session_service import Actor, create_session


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'NOTIFICATION_EMAILS_ENABLED': False,
        'SMTP_HOST': None,
        'CRON_SECRET': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user("Ada Admin", "admin@tourops.test", TEST_PASSWORD, role="admin", rounds=4)


@pytest.fixture(scope='function')
def staff_user(db_session):
    return create_user("Sam Staff", "staff@tourops.test", TEST_PASSWORD, role="staff", rounds=4)


@pytest.fixture(scope='function')
def admin_actor(admin_user):
    return Actor.from_user(admin_user)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _, token = create_session(admin_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    _, token = create_session(staff_user.id)
    return auth_headers(token)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


# =============================================================================
# ROW BUILDERS
# =============================================================================


def make_reservation(name="Smith", arrival="2024-07-01", departure="2024-07-08", status="confirmed", **fields):
    fields.setdefault("adults", 2)
    fields.setdefault("children", 0)
    reservation = ReservationSubmission(
        name=name,
        arrival_date=arrival,
        departure_date=departure,
        status=status,
        processed=False,
        **fields,
    )
    db.session.add(reservation)
    db.session.commit()
    return reservation


def make_task(title="Book flight", due="2024-07-03", priority="high", status="pending", **fields):
    task = Task(title=title, due_date=due, priority=priority, status=status, **fields)
    db.session.add(task)
    db.session.commit()
    return task


def make_invoice(invoice_id, client_id, due="2024-07-10", status="pending", amount=Decimal("100.00")):
    invoice = Invoice(
        id=invoice_id,
        client_id=client_id,
        amount=amount,
        invoice_date="2024-06-01",
        due_date=due,
        status=status,
        items=[InvoiceItem(description="Safari day", quantity=1, price=amount, total=amount)],
    )
    db.session.add(invoice)
    db.session.commit()
    return invoice

"""
Shared fixtures: an in-memory SQLite database, a TestClient bound to it,
and small factories for accounts and vouchers.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from loyaltytree.config import Settings, get_settings
from loyaltytree.db import Base, build_engine, get_db
from loyaltytree.main import app
from loyaltytree.models.customer import Customer
from loyaltytree.models.retailer import Retailer
from loyaltytree.models.voucher import Voucher
from loyaltytree.services.auth_service import CUSTOMER, RETAILER, create_access_token, hash_password
from loyaltytree.time_utils import utcnow


PASSWORD = "s3cret-pass"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        upload_dir=str(tmp_path / "uploads"),
        max_upload_bytes=1024,
    )


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db, settings):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_customer(db):
    counter = {"n": 0}

    def _make(email=None, points=0, role="user", name="Casey Customer"):
        counter["n"] += 1
        customer = Customer(
            email=email or f"customer{counter['n']}@example.com",
            password_hash=hash_password(PASSWORD),
            name=name,
            points=points,
            role=role,
        )
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


@pytest.fixture
def make_retailer(db):
    counter = {"n": 0}

    def _make(email=None, name="Green Coffee", description="Eco-friendly coffee shop chain"):
        counter["n"] += 1
        retailer = Retailer(
            email=email or f"retailer{counter['n']}@example.com",
            password_hash=hash_password(PASSWORD),
            name=name,
            description=description,
        )
        db.add(retailer)
        db.commit()
        db.refresh(retailer)
        return retailer

    return _make


@pytest.fixture
def make_voucher(db):
    def _make(retailer, points_required=500, quantity=3, expiry_date=None, title="10% Off", image_url=None):
        voucher = Voucher(
            retailer_id=retailer.id,
            title=title,
            description="Get 10% off on your next purchase",
            points_required=points_required,
            quantity=quantity,
            expiry_date=expiry_date or utcnow() + timedelta(days=60),
            image_url=image_url,
        )
        db.add(voucher)
        db.commit()
        db.refresh(voucher)
        return voucher

    return _make


@pytest.fixture
def auth_headers(settings):
    def _headers(account):
        account_type = RETAILER if isinstance(account, Retailer) else CUSTOMER
        token = create_access_token(settings, account_id=account.id, account_type=account_type)
        return {"Authorization": f"Bearer {token}"}

    return _headers

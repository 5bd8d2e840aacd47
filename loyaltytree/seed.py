"""
Load demo data: an admin customer, two retailers and two vouchers each.

    python -m loyaltytree.seed

Existing accounts (matched by email) are left untouched.
"""
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from loyaltytree.db import Base, SessionLocal, engine
from loyaltytree.models.customer import Customer
from loyaltytree.models.retailer import Retailer
from loyaltytree.models.voucher import Voucher
from loyaltytree.services.auth_service import hash_password
from loyaltytree.time_utils import utcnow


logger = logging.getLogger(__name__)

ADMIN = {"email": "admin@loyaltytree.com", "password": "admin123", "name": "Admin User"}

RETAILERS = [
    {
        "name": "Green Coffee",
        "email": "contact@greencoffee.com",
        "password": "retailer123",
        "description": "Eco-friendly coffee shop chain",
    },
    {
        "name": "Nature's Basket",
        "email": "info@naturesbasket.com",
        "password": "retailer123",
        "description": "Organic grocery store",
    },
]

VOUCHER_TEMPLATES = [
    {"suffix": "10% Off", "description": "Get 10% off on your next purchase", "points": 500, "quantity": 100, "days": 30},
    {"suffix": "Free Item", "description": "Get a free item with any purchase", "points": 1000, "quantity": 50, "days": 60},
]


def seed(db: Session) -> dict:
    created = {"customers": 0, "retailers": 0, "vouchers": 0}
    now = utcnow()

    if not db.query(Customer).filter(Customer.email == ADMIN["email"]).first():
        db.add(
            Customer(
                email=ADMIN["email"],
                password_hash=hash_password(ADMIN["password"]),
                name=ADMIN["name"],
                role="admin",
                points=0,
            )
        )
        created["customers"] += 1

    for data in RETAILERS:
        if db.query(Retailer).filter(Retailer.email == data["email"]).first():
            continue

        retailer = Retailer(
            email=data["email"],
            password_hash=hash_password(data["password"]),
            name=data["name"],
            description=data["description"],
        )
        db.add(retailer)
        db.flush()
        created["retailers"] += 1

        for tpl in VOUCHER_TEMPLATES:
            db.add(
                Voucher(
                    retailer_id=retailer.id,
                    title=f"{data['name']} - {tpl['suffix']}",
                    description=tpl["description"],
                    points_required=tpl["points"],
                    quantity=tpl["quantity"],
                    expiry_date=now + timedelta(days=tpl["days"]),
                )
            )
            created["vouchers"] += 1

    db.commit()
    return created


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = seed(db)
    except Exception:
        db.rollback()
        logger.exception("seeding failed")
        raise
    finally:
        db.close()

    logger.info("database seeded", extra=created)


if __name__ == "__main__":
    main()

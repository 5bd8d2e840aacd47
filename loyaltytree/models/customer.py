import uuid
from sqlalchemy import Column, String, TIMESTAMP, Integer, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from loyaltytree.db import Base
from loyaltytree.time_utils import utcnow


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_customers_points_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)

    points = Column(Integer, nullable=False, default=0)
    role = Column(String(20), nullable=False, default="user")  # user / admin

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    tree_submissions = relationship(
        "TreeSubmission",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    redemptions = relationship(
        "VoucherRedemption",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

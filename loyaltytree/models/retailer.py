import uuid
from sqlalchemy import Column, String, TIMESTAMP, Uuid
from sqlalchemy.orm import relationship
from loyaltytree.db import Base
from loyaltytree.time_utils import utcnow


class Retailer(Base):
    __tablename__ = "retailers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)

    description = Column(String(1000))
    logo = Column(String(500))

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    vouchers = relationship(
        "Voucher",
        back_populates="retailer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

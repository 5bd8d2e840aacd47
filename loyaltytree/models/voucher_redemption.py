import uuid
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from loyaltytree.db import Base
from loyaltytree.time_utils import utcnow


class VoucherRedemption(Base):
    __tablename__ = "voucher_redemptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    customer_id = Column(
        Uuid,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    voucher_id = Column(
        Uuid,
        ForeignKey("vouchers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # cost at issuance; the voucher price may change afterwards
    points_spent = Column(Integer, nullable=False)

    redemption_code = Column(String(20), nullable=False, unique=True)

    status = Column(String(20), nullable=False, default="active")
    # active | used | expired

    expires_at = Column(TIMESTAMP, nullable=False)
    used_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="redemptions")
    voucher = relationship("Voucher", back_populates="redemptions")

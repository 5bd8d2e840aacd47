import uuid
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from loyaltytree.db import Base
from loyaltytree.time_utils import utcnow


class Voucher(Base):
    __tablename__ = "vouchers"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_vouchers_quantity_non_negative"),
        CheckConstraint("points_required > 0", name="ck_vouchers_points_required_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    retailer_id = Column(
        Uuid,
        ForeignKey("retailers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=False, default="")

    points_required = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    expiry_date = Column(TIMESTAMP, nullable=False)

    image_url = Column(String(500))

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    retailer = relationship("Retailer", back_populates="vouchers")
    redemptions = relationship(
        "VoucherRedemption",
        back_populates="voucher",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

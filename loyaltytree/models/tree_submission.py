import uuid
from sqlalchemy import Column, Float, Integer, String, TIMESTAMP, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from loyaltytree.db import Base
from loyaltytree.time_utils import utcnow


class TreeSubmission(Base):
    __tablename__ = "tree_submissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    customer_id = Column(
        Uuid,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    image_url = Column(String(500), nullable=False)
    latitude = Column(Float)
    longitude = Column(Float)

    status = Column(String(20), nullable=False, default="pending")
    # pending | approved | rejected
    rejection_reason = Column(String(500))

    # 0 until credited; a submission is credited at most once
    points_awarded = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="tree_submissions")

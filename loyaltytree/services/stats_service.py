from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from loyaltytree.models.voucher import Voucher
from loyaltytree.models.voucher_redemption import VoucherRedemption
from loyaltytree.time_utils import utcnow


def get_retailer_stats(db: Session, retailer_id, now: datetime | None = None) -> dict:
    now = now or utcnow()

    active_vouchers = (
        db.query(func.count(Voucher.id))
        .filter(
            Voucher.retailer_id == retailer_id,
            Voucher.quantity > 0,
            Voucher.expiry_date > now,
        )
        .scalar()
    )

    total_redemptions, total_points = (
        db.query(
            func.count(VoucherRedemption.id),
            func.coalesce(func.sum(VoucherRedemption.points_spent), 0),
        )
        .join(Voucher, VoucherRedemption.voucher_id == Voucher.id)
        .filter(Voucher.retailer_id == retailer_id)
        .one()
    )

    return {
        "active_vouchers": int(active_vouchers or 0),
        "total_redemptions": int(total_redemptions or 0),
        "total_points_redeemed": int(total_points or 0),
    }

from typing import Optional

from uuid import UUID

from loyaltytree.schemas.base import CamelModel, UtcDatetime
from loyaltytree.schemas.voucher import RetailerPublicOut


class RedeemRequest(CamelModel):
    voucher_id: UUID


class RedemptionVoucherOut(CamelModel):
    id: UUID
    title: str
    description: str
    points_required: int
    expiry_date: UtcDatetime
    image_url: Optional[str] = None
    retailer: Optional[RetailerPublicOut] = None


class RedemptionOut(CamelModel):
    id: UUID
    customer_id: UUID
    voucher_id: UUID

    points_spent: int
    redemption_code: str

    status: str
    expires_at: UtcDatetime
    used_at: Optional[UtcDatetime] = None

    voucher: Optional[RedemptionVoucherOut] = None

    created_at: Optional[UtcDatetime] = None


class RedeemResult(CamelModel):
    redemption: RedemptionOut
    remaining_points: int


class ExpireResult(CamelModel):
    expired: int

from typing import Optional

from uuid import UUID

from loyaltytree.schemas.base import CamelModel, UtcDatetime


class RetailerPublicOut(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    logo: Optional[str] = None


class VoucherOut(CamelModel):
    id: UUID
    retailer_id: UUID

    title: str
    description: str

    points_required: int
    quantity: int
    expiry_date: UtcDatetime

    image_url: Optional[str] = None

    retailer: Optional[RetailerPublicOut] = None

    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class RetailerStatsOut(CamelModel):
    active_vouchers: int
    total_redemptions: int
    total_points_redeemed: int

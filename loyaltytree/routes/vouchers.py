from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from loyaltytree.config import Settings, get_settings
from loyaltytree.db import get_db
from loyaltytree.deps.auth import require_customer, require_retailer
from loyaltytree.errors import ValidationFailed
from loyaltytree.schemas.voucher import RetailerStatsOut, VoucherOut
from loyaltytree.schemas.voucher_redemption import RedeemRequest, RedeemResult, RedemptionOut
from loyaltytree.services import voucher_service
from loyaltytree.services.auth_service import Identity
from loyaltytree.services.redemption_service import (
    list_customer_redemptions,
    mark_redemption_used,
    redeem_voucher,
)
from loyaltytree.services.stats_service import get_retailer_stats
from loyaltytree.services.upload_service import discard_image, save_image
from loyaltytree.time_utils import parse_iso_datetime


router = APIRouter(prefix="/vouchers", tags=["vouchers"])


def _voucher_out(voucher) -> VoucherOut:
    out = VoucherOut.model_validate(voucher)
    if not out.image_url:
        out.image_url = voucher_service.placeholder_image_url(voucher.id)
    return out


def _parse_expiry(value: str | None):
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationFailed("expiryDate must be an ISO-8601 date or datetime")


# ─── Public ───────────────────────────────────────────────────────
@router.get("/available", response_model=list[VoucherOut])
def list_available(db: Session = Depends(get_db)):
    return [_voucher_out(v) for v in voucher_service.list_available_vouchers(db)]


# ─── Customers ────────────────────────────────────────────────────
@router.post("/redeem", response_model=RedeemResult)
def redeem(
    payload: RedeemRequest,
    identity: Identity = Depends(require_customer),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    redemption, remaining = redeem_voucher(
        db,
        customer_id=identity.id,
        voucher_id=payload.voucher_id,
        validity_days=settings.redemption_validity_days,
    )
    return {"redemption": redemption, "remaining_points": remaining}


@router.get("/my-redemptions", response_model=list[RedemptionOut])
def my_redemptions(
    identity: Identity = Depends(require_customer),
    db: Session = Depends(get_db),
):
    return list_customer_redemptions(db, identity.id)


# ─── Retailers ────────────────────────────────────────────────────
@router.post("", response_model=VoucherOut, status_code=201)
async def create_voucher(
    title: str = Form(...),
    description: str = Form(default=""),
    points_required: int = Form(..., alias="pointsRequired"),
    quantity: int = Form(...),
    expiry_date: str = Form(..., alias="expiryDate"),
    image: UploadFile | None = File(default=None),
    identity: Identity = Depends(require_retailer),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    fields = voucher_service.clean_new_voucher(
        title=title,
        description=description,
        points_required=points_required,
        quantity=quantity,
        expiry_date=_parse_expiry(expiry_date),
    )
    image_url = await save_image(image, settings) if image is not None and image.filename else None

    try:
        voucher = voucher_service.create_voucher(db, retailer_id=identity.id, image_url=image_url, **fields)
    except Exception:
        discard_image(image_url, settings)
        raise
    return _voucher_out(voucher)


@router.get("/retailer", response_model=list[VoucherOut])
def list_retailer_vouchers(
    identity: Identity = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    return [_voucher_out(v) for v in voucher_service.list_retailer_vouchers(db, identity.id)]


@router.get("/retailer/stats", response_model=RetailerStatsOut)
def retailer_stats(
    identity: Identity = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    return get_retailer_stats(db, identity.id)


@router.post("/redemptions/{code}/use", response_model=RedemptionOut)
def use_redemption(
    code: str,
    identity: Identity = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    return mark_redemption_used(db, retailer_id=identity.id, code=code)


@router.put("/{voucher_id}", response_model=VoucherOut)
async def update_voucher(
    voucher_id: UUID,
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    points_required: int | None = Form(default=None, alias="pointsRequired"),
    quantity: int | None = Form(default=None),
    expiry_date: str | None = Form(default=None, alias="expiryDate"),
    image: UploadFile | None = File(default=None),
    identity: Identity = Depends(require_retailer),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    # ownership first, so a foreign voucher never gets an image stored for it
    voucher_service.get_owned_voucher(db, identity.id, voucher_id)

    changes = voucher_service.clean_voucher_changes({
        "title": title,
        "description": description,
        "points_required": points_required,
        "quantity": quantity,
        "expiry_date": _parse_expiry(expiry_date),
    })
    image_url = await save_image(image, settings) if image is not None and image.filename else None
    if image_url:
        changes["image_url"] = image_url

    try:
        voucher = voucher_service.update_voucher(db, identity.id, voucher_id, changes)
    except Exception:
        discard_image(image_url, settings)
        raise
    return _voucher_out(voucher)


@router.delete("/{voucher_id}")
def delete_voucher(
    voucher_id: UUID,
    identity: Identity = Depends(require_retailer),
    db: Session = Depends(get_db),
):
    voucher_service.delete_voucher(db, identity.id, voucher_id)
    return {"message": "Voucher deleted successfully"}

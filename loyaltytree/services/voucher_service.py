import logging
import zlib
from datetime import datetime

from sqlalchemy.orm import Session, joinedload

from loyaltytree.errors import NotFound, ValidationFailed
from loyaltytree.models.voucher import Voucher
from loyaltytree.time_utils import to_naive_utc, utcnow


logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_COUNT = 100
PLACEHOLDER_IMAGE_URL = "https://picsum.photos/seed/loyaltytree-{n}/300/200"

_UPDATABLE_FIELDS = ("title", "description", "points_required", "quantity", "expiry_date", "image_url")


def placeholder_image_url(voucher_id) -> str:
    # keyed by id so repeated reads stay identical
    n = zlib.crc32(str(voucher_id).encode("utf-8")) % PLACEHOLDER_IMAGE_COUNT
    return PLACEHOLDER_IMAGE_URL.format(n=n)


def _require_positive(name: str, value) -> int:
    if value is None or isinstance(value, bool) or int(value) != value or value <= 0:
        raise ValidationFailed(f"{name} must be a positive integer")
    return int(value)


def _require_non_negative(name: str, value) -> int:
    if value is None or isinstance(value, bool) or int(value) != value or value < 0:
        raise ValidationFailed(f"{name} must be a non-negative integer")
    return int(value)


def _require_text(name: str, value) -> str:
    if value is None or not str(value).strip():
        raise ValidationFailed(f"{name} is required")
    return str(value).strip()


def clean_new_voucher(*, title, description, points_required, quantity, expiry_date) -> dict:
    if expiry_date is None:
        raise ValidationFailed("expiryDate is required")

    return {
        "title": _require_text("title", title),
        "description": (description or "").strip(),
        "points_required": _require_positive("pointsRequired", points_required),
        "quantity": _require_positive("quantity", quantity),
        "expiry_date": to_naive_utc(expiry_date),
    }


def clean_voucher_changes(changes: dict) -> dict:
    """Drop unknown keys and None values, then validate what is left."""
    data = {k: v for k, v in changes.items() if k in _UPDATABLE_FIELDS and v is not None}
    if "title" in data:
        data["title"] = _require_text("title", data["title"])
    if "points_required" in data:
        data["points_required"] = _require_positive("pointsRequired", data["points_required"])
    if "quantity" in data:
        data["quantity"] = _require_non_negative("quantity", data["quantity"])
    if "expiry_date" in data:
        data["expiry_date"] = to_naive_utc(data["expiry_date"])
    return data


# ============================================================
# WRITE
# ============================================================
def create_voucher(
    db: Session,
    *,
    retailer_id,
    title: str,
    description: str,
    points_required: int,
    quantity: int,
    expiry_date: datetime,
    image_url: str | None = None,
):
    fields = clean_new_voucher(
        title=title,
        description=description,
        points_required=points_required,
        quantity=quantity,
        expiry_date=expiry_date,
    )
    voucher = Voucher(retailer_id=retailer_id, image_url=image_url, **fields)
    db.add(voucher)
    db.commit()
    db.refresh(voucher)

    logger.info("voucher created", extra={"voucher_id": str(voucher.id), "retailer_id": str(retailer_id)})
    return voucher


def get_owned_voucher(db: Session, retailer_id, voucher_id) -> Voucher:
    voucher = (
        db.query(Voucher)
        .filter(Voucher.id == voucher_id, Voucher.retailer_id == retailer_id)
        .first()
    )
    if not voucher:
        raise NotFound("Voucher not found or you don't have permission to modify it")
    return voucher


def update_voucher(db: Session, retailer_id, voucher_id, changes: dict):
    """Partial update: keys absent from ``changes`` (or set to None) are left alone."""
    voucher = get_owned_voucher(db, retailer_id, voucher_id)

    data = clean_voucher_changes(changes)

    for k, v in data.items():
        setattr(voucher, k, v)

    db.commit()
    db.refresh(voucher)

    logger.info("voucher updated", extra={"voucher_id": str(voucher.id), "fields": sorted(data)})
    return voucher


def delete_voucher(db: Session, retailer_id, voucher_id):
    voucher = get_owned_voucher(db, retailer_id, voucher_id)
    db.delete(voucher)
    db.commit()

    logger.info("voucher deleted", extra={"voucher_id": str(voucher_id), "retailer_id": str(retailer_id)})


# ============================================================
# READ
# ============================================================
def list_available_vouchers(db: Session, now: datetime | None = None):
    now = now or utcnow()
    return (
        db.query(Voucher)
        .options(joinedload(Voucher.retailer))
        .filter(Voucher.quantity > 0)
        .filter(Voucher.expiry_date > now)
        .order_by(Voucher.points_required.asc(), Voucher.created_at.asc())
        .all()
    )


def list_retailer_vouchers(db: Session, retailer_id):
    return (
        db.query(Voucher)
        .options(joinedload(Voucher.retailer))
        .filter(Voucher.retailer_id == retailer_id)
        .order_by(Voucher.created_at.desc())
        .all()
    )

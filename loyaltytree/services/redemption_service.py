import logging
import secrets
import string
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from loyaltytree.errors import DomainRuleViolation, NotFound
from loyaltytree.models.customer import Customer
from loyaltytree.models.voucher import Voucher
from loyaltytree.models.voucher_redemption import VoucherRedemption
from loyaltytree.time_utils import utcnow


logger = logging.getLogger(__name__)

ACTIVE = "active"
USED = "used"
EXPIRED = "expired"

CODE_PREFIX = "VR-"
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
MAX_CODE_ATTEMPTS = 5


def generate_redemption_code() -> str:
    return CODE_PREFIX + "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def _code_exists(db: Session, code: str) -> bool:
    return (
        db.query(VoucherRedemption.id)
        .filter(VoucherRedemption.redemption_code == code)
        .first()
        is not None
    )


def new_unique_code(db: Session) -> str:
    code = generate_redemption_code()
    while _code_exists(db, code):
        code = generate_redemption_code()
    return code


def redemption_expiry(voucher_expiry: datetime, now: datetime, validity_days: int) -> datetime:
    return min(voucher_expiry, now + timedelta(days=validity_days))


def _insert_redemption(db: Session, **fields) -> VoucherRedemption:
    """
    Insert under a savepoint. The unique constraint on the code is the final
    arbiter: a collision missed by the pre-check rolls back the savepoint only
    and is retried with a fresh code.
    """
    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        redemption = VoucherRedemption(redemption_code=new_unique_code(db), **fields)
        try:
            with db.begin_nested():
                db.add(redemption)
        except IntegrityError:
            logger.warning("redemption code collision, retrying", extra={"attempt": attempt})
            continue
        return redemption

    raise RuntimeError("could not allocate a unique redemption code")


# ============================================================
# REDEEM
# ============================================================
def redeem_voucher(db: Session, *, customer_id, voucher_id, validity_days: int = 30):
    """
    Spend the customer's points on one unit of a voucher.

    The voucher decrement, the balance debit and the redemption insert
    commit together or not at all.
    """
    try:
        voucher = (
            db.query(Voucher)
            .filter(Voucher.id == voucher_id)
            .with_for_update()
            .first()
        )
        if not voucher:
            raise NotFound("Voucher not found")

        if voucher.quantity <= 0:
            raise DomainRuleViolation("Voucher out of stock", code="out_of_stock")

        now = utcnow()
        if now >= voucher.expiry_date:
            raise DomainRuleViolation("Voucher has expired", code="voucher_expired")

        customer = (
            db.query(Customer)
            .filter(Customer.id == customer_id)
            .with_for_update()
            .one()
        )
        if customer.points < voucher.points_required:
            raise DomainRuleViolation("Insufficient points", code="insufficient_points")

        cost = voucher.points_required
        voucher.quantity -= 1
        customer.points -= cost

        redemption = _insert_redemption(
            db,
            customer_id=customer.id,
            voucher_id=voucher.id,
            points_spent=cost,
            status=ACTIVE,
            expires_at=redemption_expiry(voucher.expiry_date, now, validity_days),
        )

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "voucher redeemed",
        extra={
            "redemption_id": str(redemption.id),
            "voucher_id": str(voucher_id),
            "customer_id": str(customer_id),
            "points": cost,
        },
    )

    redemption = get_redemption(db, redemption.id)
    return redemption, customer.points


def get_redemption(db: Session, redemption_id):
    return (
        db.query(VoucherRedemption)
        .options(joinedload(VoucherRedemption.voucher).joinedload(Voucher.retailer))
        .filter(VoucherRedemption.id == redemption_id)
        .one()
    )


def list_customer_redemptions(db: Session, customer_id):
    return (
        db.query(VoucherRedemption)
        .options(joinedload(VoucherRedemption.voucher).joinedload(Voucher.retailer))
        .filter(VoucherRedemption.customer_id == customer_id)
        .order_by(VoucherRedemption.created_at.desc())
        .all()
    )


# ============================================================
# USE REDEMPTION (retailer confirms at point of use)
# ============================================================
def mark_redemption_used(db: Session, *, retailer_id, code: str, now: datetime | None = None):
    now = now or utcnow()

    redemption = (
        db.query(VoucherRedemption)
        .join(Voucher, VoucherRedemption.voucher_id == Voucher.id)
        .filter(VoucherRedemption.redemption_code == (code or "").strip().upper())
        .filter(Voucher.retailer_id == retailer_id)
        .with_for_update()
        .first()
    )
    if not redemption:
        raise NotFound("Redemption not found")

    if redemption.status == ACTIVE and redemption.expires_at < now:
        redemption.status = EXPIRED
        db.commit()

    if redemption.status != ACTIVE:
        raise DomainRuleViolation(
            f"Redemption is {redemption.status}",
            code="redemption_not_active",
        )

    redemption.status = USED
    redemption.used_at = now
    db.commit()

    logger.info("redemption used", extra={"redemption_id": str(redemption.id), "retailer_id": str(retailer_id)})
    return get_redemption(db, redemption.id)


# ============================================================
# EXPIRE REDEMPTIONS (admin sweep)
# ============================================================
def expire_redemptions(db: Session, now: datetime | None = None) -> int:
    now = now or utcnow()

    expired = (
        db.query(VoucherRedemption)
        .filter(VoucherRedemption.status == ACTIVE)
        .filter(VoucherRedemption.expires_at < now)
        .all()
    )

    for r in expired:
        r.status = EXPIRED

    db.commit()

    if expired:
        logger.info("redemptions expired", extra={"count": len(expired), "now": now.isoformat()})
    return len(expired)

import logging

from sqlalchemy.orm import Session, joinedload

from loyaltytree.errors import DomainRuleViolation, NotFound, ValidationFailed
from loyaltytree.models.customer import Customer
from loyaltytree.models.tree_submission import TreeSubmission


logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"


def check_coordinates(latitude, longitude):
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValidationFailed("latitude must be between -90 and 90")
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValidationFailed("longitude must be between -180 and 180")


# ============================================================
# AWARD POINTS (single transition shared by every approve path)
# ============================================================
def award_points(db: Session, submission: TreeSubmission, points: int) -> int:
    """
    Approve ``submission`` and credit its owner, once.

    Returns the points credited by this call: 0 when the submission was
    already credited. Flushes but does not commit.
    """
    if submission.points_awarded:
        return 0

    customer = (
        db.query(Customer)
        .filter(Customer.id == submission.customer_id)
        .with_for_update()
        .one()
    )

    customer.points = (customer.points or 0) + points
    submission.status = APPROVED
    submission.rejection_reason = None
    submission.points_awarded = points

    db.flush()
    return points


# ============================================================
# SUBMIT (auto-approved upload)
# ============================================================
def submit_tree(
    db: Session,
    *,
    customer_id,
    image_url: str,
    latitude: float | None,
    longitude: float | None,
    points_per_tree: int,
):
    check_coordinates(latitude, longitude)

    submission = TreeSubmission(
        customer_id=customer_id,
        image_url=image_url,
        latitude=latitude,
        longitude=longitude,
        status=PENDING,
        points_awarded=0,
    )

    try:
        db.add(submission)
        db.flush()
        awarded = award_points(db, submission, points_per_tree)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(submission)
    customer = db.get(Customer, customer_id)

    logger.info(
        "tree submission approved",
        extra={"submission_id": str(submission.id), "customer_id": str(customer_id), "points": awarded},
    )
    return submission, awarded, customer.points


def create_pending_submission(
    db: Session,
    *,
    customer_id,
    image_url: str,
    latitude: float | None,
    longitude: float | None,
):
    check_coordinates(latitude, longitude)

    submission = TreeSubmission(
        customer_id=customer_id,
        image_url=image_url,
        latitude=latitude,
        longitude=longitude,
        status=PENDING,
        points_awarded=0,
    )
    try:
        db.add(submission)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(submission)
    logger.info(
        "tree submission queued for review",
        extra={"submission_id": str(submission.id), "customer_id": str(customer_id)},
    )
    return submission


# ============================================================
# REVIEW (administrative path)
# ============================================================
def review_submission(
    db: Session,
    submission_id,
    *,
    decision: str,
    rejection_reason: str | None = None,
    points_per_tree: int,
):
    if decision not in (APPROVED, REJECTED):
        raise ValidationFailed("status must be approved or rejected")

    submission = (
        db.query(TreeSubmission)
        .filter(TreeSubmission.id == submission_id)
        .with_for_update()
        .first()
    )
    if not submission:
        raise NotFound("Tree planting not found")

    if submission.status != PENDING:
        raise DomainRuleViolation(
            f"Tree planting already {submission.status}",
            code="already_reviewed",
        )

    try:
        if decision == APPROVED:
            award_points(db, submission, points_per_tree)
        else:
            submission.status = REJECTED
            submission.rejection_reason = rejection_reason
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(submission)
    logger.info(
        "tree submission reviewed",
        extra={"submission_id": str(submission.id), "status": submission.status},
    )
    return submission


# ============================================================
# LISTINGS
# ============================================================
def list_customer_submissions(db: Session, customer_id):
    return (
        db.query(TreeSubmission)
        .filter(TreeSubmission.customer_id == customer_id)
        .order_by(TreeSubmission.created_at.desc())
        .all()
    )


def list_pending_submissions(db: Session):
    return (
        db.query(TreeSubmission)
        .options(joinedload(TreeSubmission.customer))
        .filter(TreeSubmission.status == PENDING)
        .order_by(TreeSubmission.created_at.asc())
        .all()
    )

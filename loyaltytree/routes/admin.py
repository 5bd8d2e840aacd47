from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from loyaltytree.config import Settings, get_settings
from loyaltytree.db import get_db
from loyaltytree.deps.auth import require_admin
from loyaltytree.schemas.tree_submission import (
    PendingTreeSubmissionOut,
    TreeReviewRequest,
    TreeSubmissionOut,
)
from loyaltytree.schemas.voucher_redemption import ExpireResult
from loyaltytree.services.redemption_service import expire_redemptions
from loyaltytree.services.tree_service import list_pending_submissions, review_submission


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/trees/pending", response_model=list[PendingTreeSubmissionOut])
def admin_pending_trees(db: Session = Depends(get_db)):
    return list_pending_submissions(db)


@router.post("/trees/{submission_id}/review", response_model=TreeSubmissionOut)
def admin_review_tree(
    submission_id: UUID,
    payload: TreeReviewRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return review_submission(
        db,
        submission_id,
        decision=payload.status,
        rejection_reason=payload.rejection_reason,
        points_per_tree=settings.points_per_tree,
    )


@router.post("/redemptions/expire", response_model=ExpireResult)
def admin_expire_redemptions(db: Session = Depends(get_db)):
    return {"expired": expire_redemptions(db)}

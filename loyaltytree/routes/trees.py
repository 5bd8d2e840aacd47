from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from loyaltytree.config import Settings, get_settings
from loyaltytree.db import get_db
from loyaltytree.deps.auth import require_customer
from loyaltytree.schemas.tree_submission import TreeSubmissionOut, TreeUploadResult
from loyaltytree.services.auth_service import Identity
from loyaltytree.services.tree_service import (
    check_coordinates,
    create_pending_submission,
    list_customer_submissions,
    submit_tree,
)
from loyaltytree.services.upload_service import discard_image, save_image


router = APIRouter(prefix="/trees", tags=["trees"])


@router.post("", response_model=TreeUploadResult, status_code=201)
async def upload_tree_planting(
    image: UploadFile | None = File(default=None),
    latitude: float | None = Form(default=None),
    longitude: float | None = Form(default=None),
    identity: Identity = Depends(require_customer),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    check_coordinates(latitude, longitude)
    image_url = await save_image(image, settings)

    try:
        if settings.auto_approve_trees:
            submission, awarded, total = submit_tree(
                db,
                customer_id=identity.id,
                image_url=image_url,
                latitude=latitude,
                longitude=longitude,
                points_per_tree=settings.points_per_tree,
            )
        else:
            # credited later through the admin review
            submission = create_pending_submission(
                db,
                customer_id=identity.id,
                image_url=image_url,
                latitude=latitude,
                longitude=longitude,
            )
            awarded, total = 0, identity.account.points
    except Exception:
        discard_image(image_url, settings)
        raise

    return {
        "tree_planting": submission,
        "points_awarded": awarded,
        "new_total_points": total,
    }


@router.get("/my", response_model=list[TreeSubmissionOut])
def my_tree_plantings(
    identity: Identity = Depends(require_customer),
    db: Session = Depends(get_db),
):
    return list_customer_submissions(db, identity.id)

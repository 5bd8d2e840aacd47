from typing import Literal, Optional

from uuid import UUID

from loyaltytree.schemas.base import CamelModel, UtcDatetime


class TreeSubmissionOut(CamelModel):
    id: UUID
    customer_id: UUID

    image_url: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    status: str
    rejection_reason: Optional[str] = None
    points_awarded: int

    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class SubmitterOut(CamelModel):
    id: UUID
    name: str
    email: str


class PendingTreeSubmissionOut(TreeSubmissionOut):
    customer: SubmitterOut


class TreeUploadResult(CamelModel):
    tree_planting: TreeSubmissionOut
    points_awarded: int
    new_total_points: int


class TreeReviewRequest(CamelModel):
    status: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = None

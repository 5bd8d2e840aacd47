"""create loyaltytree tables

Revision ID: 4f1d2c3b5a60
Revises: 
Create Date: 2026-10-19 09:12:41.208311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1d2c3b5a60'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("customers"):
        op.create_table(
            "customers",
            sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("points", sa.Integer(), server_default="0", nullable=False),
            sa.Column("role", sa.String(length=20), server_default="user", nullable=False),
            *_timestamps(),
            sa.UniqueConstraint("email", name="uq_customers_email"),
            sa.CheckConstraint("points >= 0", name="ck_customers_points_non_negative"),
        )

    if not inspector.has_table("retailers"):
        op.create_table(
            "retailers",
            sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("description", sa.String(length=1000), nullable=True),
            sa.Column("logo", sa.String(length=500), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint("email", name="uq_retailers_email"),
        )

    if not inspector.has_table("tree_submissions"):
        op.create_table(
            "tree_submissions",
            sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
            sa.Column(
                "customer_id",
                sa.Uuid(),
                sa.ForeignKey("customers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("image_url", sa.String(length=500), nullable=False),
            sa.Column("latitude", sa.Float(), nullable=True),
            sa.Column("longitude", sa.Float(), nullable=True),
            sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
            sa.Column("rejection_reason", sa.String(length=500), nullable=True),
            sa.Column("points_awarded", sa.Integer(), server_default="0", nullable=False),
            *_timestamps(),
        )
        op.create_index("ix_tree_submissions_customer_id", "tree_submissions", ["customer_id"])

    if not inspector.has_table("vouchers"):
        op.create_table(
            "vouchers",
            sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
            sa.Column(
                "retailer_id",
                sa.Uuid(),
                sa.ForeignKey("retailers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("description", sa.String(length=2000), server_default="", nullable=False),
            sa.Column("points_required", sa.Integer(), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("expiry_date", sa.TIMESTAMP(), nullable=False),
            sa.Column("image_url", sa.String(length=500), nullable=True),
            *_timestamps(),
            sa.CheckConstraint("quantity >= 0", name="ck_vouchers_quantity_non_negative"),
            sa.CheckConstraint("points_required > 0", name="ck_vouchers_points_required_positive"),
        )
        op.create_index("ix_vouchers_retailer_id", "vouchers", ["retailer_id"])

    if not inspector.has_table("voucher_redemptions"):
        op.create_table(
            "voucher_redemptions",
            sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
            sa.Column(
                "customer_id",
                sa.Uuid(),
                sa.ForeignKey("customers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "voucher_id",
                sa.Uuid(),
                sa.ForeignKey("vouchers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("points_spent", sa.Integer(), nullable=False),
            sa.Column("redemption_code", sa.String(length=20), nullable=False),
            sa.Column("status", sa.String(length=20), server_default="active", nullable=False),
            sa.Column("expires_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("used_at", sa.TIMESTAMP(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint("redemption_code", name="uq_voucher_redemptions_code"),
        )
        op.create_index("ix_voucher_redemptions_customer_id", "voucher_redemptions", ["customer_id"])
        op.create_index("ix_voucher_redemptions_voucher_id", "voucher_redemptions", ["voucher_id"])


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ("voucher_redemptions", "vouchers", "tree_submissions", "retailers", "customers"):
        if inspector.has_table(table):
            op.drop_table(table)

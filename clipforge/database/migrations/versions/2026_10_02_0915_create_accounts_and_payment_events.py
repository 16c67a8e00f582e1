"""create accounts and payment_events

Revision ID: 8f1c2a7d4b90
Revises:
Create Date: 2026-10-02 09:15:41.203118

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "8f1c2a7d4b90"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column(
            "user_id",
            sa.String(),
            primary_key=True,
            comment="Identity provider subject",
        ),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("credits >= 0", name="ck_accounts_credits_non_negative"),
    )

    op.create_table(
        "payment_events",
        sa.Column("event_id", sa.String(), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("accounts.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_payment_events_user_id", "payment_events", ["user_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_payment_events_user_id", table_name="payment_events")
    op.drop_table("payment_events")
    op.drop_table("accounts")

from alembic import op
import sqlalchemy as sa

revision = "0001_listings"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "listings",
        sa.Column("id", sa.String(), primary_key=True),

        sa.Column("mls_number", sa.String(length=50), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Active"),
        sa.Column("description", sa.Text(), nullable=True),

        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),

        sa.UniqueConstraint("mls_number", name="uq_listing_mls_number"),
    )

    op.create_index("ix_listings_status_price", "listings", ["status", "price"])
    op.create_index("ix_listings_updated_at", "listings", ["updated_at"])


def downgrade():
    op.drop_index("ix_listings_updated_at", table_name="listings")
    op.drop_index("ix_listings_status_price", table_name="listings")
    op.drop_table("listings")

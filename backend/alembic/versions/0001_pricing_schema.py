from alembic import op
import sqlalchemy as sa


revision = "0001_pricing_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="staff"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_table(
        "metal_rates",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("purity", sa.String(20), nullable=False, index=True),
        sa.Column("rate_per_gram", sa.Numeric(12, 4), nullable=False),
        sa.Column("source", sa.String(100), nullable=False, server_default="manual"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("purity", name="uq_metal_rates_purity"),
    )
    op.create_table(
        "metal_rate_history",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("purity", sa.String(20), nullable=False, index=True),
        sa.Column("rate_per_gram", sa.Numeric(12, 4), nullable=False),
        sa.Column("source", sa.String(100), nullable=False),
        sa.Column("observed_at", sa.DateTime(timezone=True), nullable=False, index=True),
    )
    op.create_table(
        "making_charge_configs",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("category", sa.String(100), nullable=True, index=True),
        sa.Column("purity", sa.String(20), nullable=True, index=True),
        sa.Column("making_charge_pct", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("wastage_pct", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "jewelry_items",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("sku", sa.String(100), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True, index=True),
        sa.Column("metal_type", sa.String(50), nullable=True),
        sa.Column("purity", sa.String(20), nullable=False, index=True),
        sa.Column("weight", sa.Numeric(10, 3), nullable=False),
        sa.Column("making_charges", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("wastage_percentage", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("selling_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_stock_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("sku", name="uq_jewelry_items_sku"),
    )


def downgrade() -> None:
    op.drop_table("jewelry_items")
    op.drop_table("making_charge_configs")
    op.drop_table("metal_rate_history")
    op.drop_table("metal_rates")
    op.drop_table("users")

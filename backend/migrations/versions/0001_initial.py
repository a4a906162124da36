"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-01-31 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    op.execute('CREATE EXTENSION IF NOT EXISTS "pg_trgm"')

    op.execute(
        """
        CREATE OR REPLACE FUNCTION set_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
        """
    )

    op.create_table(
        "vehicles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("uuid_generate_v4()")),
        sa.Column("title", sa.String(length=255)),
        sa.Column("brand", sa.String(length=100)),
        sa.Column("model", sa.String(length=100)),
        sa.Column("year", sa.Integer()),
        sa.Column("vin", sa.String(length=50)),
        sa.Column("mileage_km", sa.Integer()),
        sa.Column("auction_location", sa.String(length=255)),
        sa.Column("notes", sa.Text()),
        sa.Column("status", sa.String(length=50), nullable=False, server_default=sa.text("'watching'")),
        sa.Column("start_bid", sa.Numeric(12, 2)),
        sa.Column("final_bid", sa.Numeric(12, 2)),
        sa.Column("market_price_de", sa.Numeric(12, 2)),
        sa.Column("expected_resale_de", sa.Numeric(12, 2)),
        sa.Column("cost_inputs", postgresql.JSONB()),
        sa.Column("photo_keys", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb")),
        sa.Column("ai_damage_report", postgresql.JSONB()),
        sa.Column("analysis_status", sa.String(length=50)),
        sa.Column("analysis_error", sa.Text()),
        sa.Column("analysis_retry_count", sa.Integer(), server_default=sa.text("0")),
        sa.Column("analysis_started_at", sa.DateTime(timezone=True)),
        sa.Column("analysis_completed_at", sa.DateTime(timezone=True)),
        sa.Column("created_by", sa.String(length=100)),
        sa.Column("updated_by", sa.String(length=100)),
        sa.Column(
            "search_text",
            sa.Text(),
            sa.Computed(
                "coalesce(title, '') || ' ' || "
                "coalesce(brand, '') || ' ' || "
                "coalesce(model, '') || ' ' || "
                "coalesce(vin, '') || ' ' || "
                "coalesce(auction_location, '') || ' ' || "
                "coalesce(notes, '')",
                persisted=True,
            ),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("idx_vehicles_status", "vehicles", ["status"])
    op.create_index("idx_vehicles_created", "vehicles", [sa.text("created_at DESC")])
    op.create_index("idx_vehicles_analysis_status", "vehicles", ["analysis_status"])
    op.create_index(
        "idx_vehicles_search_text_trgm",
        "vehicles",
        ["search_text"],
        postgresql_using="gin",
        postgresql_ops={"search_text": "gin_trgm_ops"},
    )

    op.create_table(
        "mechanic_reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("uuid_generate_v4()")),
        sa.Column("vehicle_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("mechanic_id", sa.String(length=100), nullable=False),
        sa.Column("recommendation", sa.String(length=20)),
        sa.Column("repair_estimate", sa.Numeric(12, 2), server_default=sa.text("0")),
        sa.Column("risk", sa.String(length=20)),
        sa.Column("comment", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.CheckConstraint(
            "recommendation IS NULL OR recommendation IN ('green', 'orange', 'red')",
            name="ck_reviews_recommendation",
        ),
        sa.CheckConstraint(
            "risk IS NULL OR risk IN ('low', 'medium', 'high')",
            name="ck_reviews_risk",
        ),
    )
    op.create_index("idx_reviews_vehicle", "mechanic_reviews", ["vehicle_id"])

    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(length=100), primary_key=True),
        sa.Column("value", postgresql.JSONB(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )

    for table in ("vehicles", "app_settings"):
        op.execute(
            f"""
            CREATE TRIGGER trg_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION set_updated_at();
            """
        )


def downgrade() -> None:
    for table in ("app_settings", "vehicles"):
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_updated_at ON {table}")
    op.drop_table("app_settings")
    op.drop_index("idx_reviews_vehicle", table_name="mechanic_reviews")
    op.drop_table("mechanic_reviews")
    op.drop_index("idx_vehicles_search_text_trgm", table_name="vehicles")
    op.drop_index("idx_vehicles_analysis_status", table_name="vehicles")
    op.drop_index("idx_vehicles_created", table_name="vehicles")
    op.drop_index("idx_vehicles_status", table_name="vehicles")
    op.drop_table("vehicles")
    op.execute("DROP FUNCTION IF EXISTS set_updated_at()")

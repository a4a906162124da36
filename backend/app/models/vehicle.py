import uuid
from datetime import datetime

from sqlalchemy import Computed, DateTime, Index, Integer, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=text("uuid_generate_v4()")
    )

    title: Mapped[str | None] = mapped_column(String(255))
    brand: Mapped[str | None] = mapped_column(String(100))
    model: Mapped[str | None] = mapped_column(String(100))
    year: Mapped[int | None] = mapped_column(Integer)
    vin: Mapped[str | None] = mapped_column(String(50))
    mileage_km: Mapped[int | None] = mapped_column(Integer)
    auction_location: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str | None] = mapped_column(Text)

    status: Mapped[str] = mapped_column(String(50), server_default=text("'watching'"))

    # AED
    start_bid: Mapped[float | None] = mapped_column(Numeric(12, 2))
    final_bid: Mapped[float | None] = mapped_column(Numeric(12, 2))
    # EUR
    market_price_de: Mapped[float | None] = mapped_column(Numeric(12, 2))
    expected_resale_de: Mapped[float | None] = mapped_column(Numeric(12, 2))

    cost_inputs: Mapped[dict | None] = mapped_column(JSONB)
    photo_keys: Mapped[list] = mapped_column(JSONB, server_default=text("'[]'::jsonb"))

    ai_damage_report: Mapped[dict | None] = mapped_column(JSONB)
    analysis_status: Mapped[str | None] = mapped_column(String(50))
    analysis_error: Mapped[str | None] = mapped_column(Text)
    analysis_retry_count: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    analysis_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    analysis_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_by: Mapped[str | None] = mapped_column(String(100))
    updated_by: Mapped[str | None] = mapped_column(String(100))

    search_text: Mapped[str | None] = mapped_column(
        Text,
        Computed(
            "coalesce(title, '') || ' ' || "
            "coalesce(brand, '') || ' ' || "
            "coalesce(model, '') || ' ' || "
            "coalesce(vin, '') || ' ' || "
            "coalesce(auction_location, '') || ' ' || "
            "coalesce(notes, '')",
            persisted=True,
        ),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )

    reviews = relationship(
        "MechanicReview",
        back_populates="vehicle",
        order_by="MechanicReview.created_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_vehicles_status", "status"),
        Index("idx_vehicles_created", text("created_at DESC")),
        Index("idx_vehicles_analysis_status", "analysis_status"),
        Index(
            "idx_vehicles_search_text_trgm",
            "search_text",
            postgresql_using="gin",
            postgresql_ops={"search_text": "gin_trgm_ops"},
        ),
    )

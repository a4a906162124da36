import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class MechanicReview(Base):
    __tablename__ = "mechanic_reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=text("uuid_generate_v4()")
    )
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False
    )
    mechanic_id: Mapped[str] = mapped_column(String(100), nullable=False)
    recommendation: Mapped[str | None] = mapped_column(String(20))
    # EUR
    repair_estimate: Mapped[float] = mapped_column(Numeric(12, 2), server_default=text("0"))
    risk: Mapped[str | None] = mapped_column(String(20))
    comment: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )

    vehicle = relationship("Vehicle", back_populates="reviews")

    __table_args__ = (Index("idx_reviews_vehicle", "vehicle_id"),)

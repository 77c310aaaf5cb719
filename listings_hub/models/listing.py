from sqlalchemy import Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from listings_hub.models.base import Base, AuditMixin, gen_id


LISTING_STATUSES = ("Active", "Pending", "Sold")


class Listing(AuditMixin, Base):
    __tablename__ = "listings"
    __table_args__ = (
        # MLS number is the natural key; concurrent creators collide here
        UniqueConstraint("mls_number", name="uq_listing_mls_number"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("lst"))

    mls_number: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)

    # "Active" | "Pending" | "Sold"
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Filled by the geocoder, never by ingestion
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

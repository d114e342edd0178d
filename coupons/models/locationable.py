"""Locationable join table scoping any entity kind to store locations."""

from sqlalchemy import Column, String, UniqueConstraint

from coupons.core.database import Base
from coupons.models.shared import UUIDType, generate_uuid


class Locationable(Base):
    """Links an entity, identified by kind tag and id, to a location."""

    __tablename__ = "locationables"
    __table_args__ = (
        UniqueConstraint("location_id", "locationable_type", "locationable_id"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    location_id = Column(UUIDType, nullable=False, index=True)
    locationable_type = Column(String(50), nullable=False)
    locationable_id = Column(UUIDType, nullable=False, index=True)

"""Locationable repository for polymorphic location links."""

from uuid import UUID

from sqlalchemy.orm import Query, Session

from coupons.models.locationable import Locationable


class LocationableRepository:
    """Repository for Locationable links, scoped to one entity kind."""

    def __init__(self, db: Session, locationable_type: str):
        self.db = db
        self.locationable_type = locationable_type

    def _query(self, locationable_id: UUID) -> Query:  # type: ignore[type-arg]
        return self.db.query(Locationable).filter(
            Locationable.locationable_type == self.locationable_type,
            Locationable.locationable_id == locationable_id,
        )

    def get_location_ids(self, locationable_id: UUID) -> list[UUID]:
        """Get the location IDs linked to an entity."""
        return [link.location_id for link in self._query(locationable_id).all()]

    def has_any(self, locationable_id: UUID) -> bool:
        """Check whether an entity is linked to any location."""
        return self._query(locationable_id).first() is not None

    def is_linked(self, locationable_id: UUID, location_id: UUID) -> bool:
        """Check whether an entity is linked to a specific location."""
        return (
            self._query(locationable_id).filter(Locationable.location_id == location_id).first()
            is not None
        )

    def sync(self, locationable_id: UUID, location_ids: list[UUID]) -> None:
        """Replace an entity's location links. An empty list removes all links.

        Does not commit; callers own the transaction.
        """
        wanted = set(location_ids)
        existing = {link.location_id: link for link in self._query(locationable_id).all()}

        for location_id, link in existing.items():
            if location_id not in wanted:
                self.db.delete(link)
        for location_id in wanted - existing.keys():
            self.db.add(
                Locationable(
                    location_id=location_id,
                    locationable_type=self.locationable_type,
                    locationable_id=locationable_id,
                )
            )
        self.db.flush()

    def detach_all(self, locationable_id: UUID) -> None:
        """Remove every location link of an entity without committing."""
        self._query(locationable_id).delete(synchronize_session=False)

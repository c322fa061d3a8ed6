"""Read-side queries over gyms, areas, sports and open slots."""
from typing import List, Optional

from ..models import AREA_PREFIX, GYM_PREFIX, Area, Gym, OpenSlotRecord, Sport, make_ref, strip_ref
from .document_store import DocumentStore, Filter, document_store
from .reference_resolver import AREAS, GYMS, SPORTS
from .slot_reconciler import OPEN_SLOTS


class CatalogService:
    """Query helpers for the search screens."""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or document_store

    def search_gyms(
        self,
        area: Optional[str] = None,
        sport: Optional[str] = None,
        keyword: Optional[str] = None,
    ) -> List[Gym]:
        """Search gyms.

        Args:
            area: Area name; gyms in other areas are excluded
            sport: Sport tag the gym must carry
            keyword: Substring of the gym name or address

        Returns:
            Matching gyms, oldest first
        """
        where: List[Filter] = []
        if area:
            area_doc = self.store.find_one(AREAS, "name", area)
            if not area_doc:
                return []
            where.append(("area_id", "==", make_ref(AREA_PREFIX, area_doc["id"])))
        if sport:
            where.append(("tags", "array-contains", sport))

        gyms = [Gym(**doc) for doc in self.store.find(GYMS, where)]
        if keyword:
            gyms = [g for g in gyms if keyword in g.name or keyword in g.address]
        return gyms

    def get_gym(self, gym_id: str) -> Optional[Gym]:
        doc = self.store.get(GYMS, strip_ref(GYM_PREFIX, gym_id))
        return Gym(**doc) if doc else None

    def list_areas(self) -> List[Area]:
        return [Area(**doc) for doc in self.store.find(AREAS)]

    def list_sports(self) -> List[Sport]:
        return [Sport(**doc) for doc in self.store.find(SPORTS)]

    def list_open_slots(
        self,
        gym_id: Optional[str] = None,
        sport: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[OpenSlotRecord]:
        """List stored open slots.

        Args:
            gym_id: Gym reference or raw id
            sport: Sport name
            date_from: Earliest date (YYYY-MM-DD, inclusive)
            date_to: Latest date (YYYY-MM-DD, inclusive)
            status: One of available/few/full/closed

        Returns:
            Matching records ordered by date and start time
        """
        where: List[Filter] = []
        if gym_id:
            where.append(("gym_id", "==", make_ref(GYM_PREFIX, gym_id)))
        if sport:
            where.append(("sport_name", "==", sport))
        if date_from:
            where.append(("date", ">=", date_from))
        if date_to:
            where.append(("date", "<=", date_to))
        if status:
            where.append(("status", "==", status))

        records = [OpenSlotRecord(**doc) for doc in self.store.find(OPEN_SLOTS, where)]
        records.sort(key=lambda r: (r.date, r.start_time))
        return records


# Global catalog service instance
catalog_service = CatalogService()

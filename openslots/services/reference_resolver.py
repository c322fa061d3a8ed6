"""Maps free-text gym, area and sport names to stored references."""
from typing import Optional

from ..models import AREA_PREFIX, GYM_PREFIX, SPORT_PREFIX, Gym, make_ref, strip_ref
from ..utils.logger import logger
from .document_store import DocumentStore, document_store

GYMS = "gyms"
AREAS = "areas"
SPORTS = "sports"


class ReferenceResolver:
    """Resolves names against the gyms, areas and sports collections.

    Gyms and areas are created on demand; sports are a closed vocabulary and
    are only ever looked up.
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or document_store

    def resolve_gym(
        self,
        name: str,
        area_name: Optional[str] = None,
        address: Optional[str] = None,
        tel: Optional[str] = None,
        official_url: Optional[str] = None,
    ) -> str:
        """Return the reference of the gym with this exact name, creating it if needed.

        The area is resolved and attached only when the gym is created; an
        existing gym is returned untouched.

        Returns:
            Gym reference ("gym_<id>")
        """
        existing = self.store.find_one(GYMS, "name", name)
        if existing:
            logger.info(f"[RESOLVER] Gym already exists: {existing['id']}")
            return make_ref(GYM_PREFIX, existing["id"])

        area_id = self.resolve_area(area_name)
        if area_id is None:
            logger.warning(f"[RESOLVER] No area name for '{name}', gym will have no area_id")

        gym = Gym(
            id="",
            name=name,
            address=address or "",
            tel=tel or "",
            area_id=area_id,
            official_url=official_url or "",
        )
        data = gym.model_dump(exclude={"id"}, exclude_none=True)
        # Another request may have created the same gym since the lookup above
        gym_id, created = self.store.get_or_create(GYMS, "name", name, data)
        if created:
            logger.info(f"[RESOLVER] Created new gym: {name} {gym_id}")
        return make_ref(GYM_PREFIX, gym_id)

    def resolve_area(self, name: Optional[str]) -> Optional[str]:
        """Return the area reference for a name, creating the area if needed.

        Returns:
            Area reference ("area_<id>"), or None for a blank name
        """
        if not name or not name.strip():
            return None
        name = name.strip()
        area_id, created = self.store.get_or_create(AREAS, "name", name, {"name": name})
        if created:
            logger.info(f"[RESOLVER] Created new area: {name} {area_id}")
        return make_ref(AREA_PREFIX, area_id)

    def resolve_sport(self, name: str) -> Optional[str]:
        """Return the sport reference for an exact name, or None if it is unknown."""
        sport = self.store.find_one(SPORTS, "name", name)
        if not sport:
            logger.warning(f"[RESOLVER] Sport not found: {name}")
            return None
        return make_ref(SPORT_PREFIX, sport["id"])

    def area_for_gym(self, gym_id: str) -> Optional[str]:
        """Return the area reference stored on a gym, or None.

        Args:
            gym_id: Gym reference ("gym_<id>") or raw id
        """
        gym = self.store.get(GYMS, strip_ref(GYM_PREFIX, gym_id))
        if not gym:
            logger.warning(f"[RESOLVER] Gym {gym_id} not found")
            return None
        area_id = gym.get("area_id")
        if not area_id:
            logger.warning(f"[RESOLVER] Gym {gym_id} has no area_id")
            return None
        return make_ref(AREA_PREFIX, area_id)


# Global reference resolver instance
reference_resolver = ReferenceResolver()

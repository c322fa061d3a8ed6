"""Writes extracted slots to the open_slots collection."""
import json
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import BatchReconcileResult, OpenSlotRecord, ReconcileResult, Slot
from ..utils.logger import logger
from .document_store import DocumentStore, document_store
from .reference_resolver import ReferenceResolver

OPEN_SLOTS = "open_slots"


class SlotReconciler:
    """Resolves each slot's references and persists it, one slot at a time.

    A slot that cannot be resolved or written is counted as failed and the
    batch carries on with the next one.
    """

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        resolver: Optional[ReferenceResolver] = None,
    ):
        self.store = store or document_store
        self.resolver = resolver or ReferenceResolver(store=self.store)

    def reconcile(self, gym_id: str, source_id: str, slots: List[Slot]) -> ReconcileResult:
        """Persist a batch of slots for one gym.

        Args:
            gym_id: Gym reference ("gym_<id>")
            source_id: Source reference ("source_<id>")
            slots: Slots from either extractor

        Returns:
            Counts of written and failed slots plus one message per failure.
            When the gym has no area nothing is written and the result holds
            a single error with zero counts.
        """
        result = ReconcileResult()
        logger.info(f"[RECONCILE] Converting {len(slots)} slots for {gym_id} from {source_id}")

        if not slots:
            logger.warning("[RECONCILE] No slots to convert")
            return result

        area_id = self.resolver.area_for_gym(gym_id)
        if not area_id:
            error = f"Failed to get area_id for gym: {gym_id}"
            logger.error(f"[RECONCILE] {error}, skipping slot creation")
            result.errors.append(error)
            return result

        sport_ids: Dict[str, str] = {}
        for index, slot in enumerate(slots, start=1):
            label = f"{slot.date} {slot.start_time}-{slot.end_time} ({slot.sport_name})"
            logger.debug(f"[RECONCILE] [{index}/{len(slots)}] {label}")

            sport_id = sport_ids.get(slot.sport_name)
            if sport_id is None:
                sport_id = self.resolver.resolve_sport(slot.sport_name)
                if sport_id is None:
                    result.failed += 1
                    result.errors.append(f"Sport not found: {slot.sport_name}")
                    continue
                sport_ids[slot.sport_name] = sport_id

            violation = slot.capacity_violation()
            if violation:
                result.failed += 1
                result.errors.append(f"Invalid capacity for slot {label}: {violation}")
                continue

            try:
                record = OpenSlotRecord.from_slot(
                    slot,
                    gym_id=gym_id,
                    area_id=area_id,
                    sport_id=sport_id,
                    source_id=source_id,
                    updated_at=datetime.now(timezone.utc),
                )
                self.store.add(OPEN_SLOTS, record.model_dump(mode="json"))
                result.success += 1
            except Exception as e:
                result.failed += 1
                result.errors.append(f"Failed to convert slot: {str(e)}")
                logger.error(
                    f"[RECONCILE] Failed to write slot: {e}\n"
                    f"Slot data: {json.dumps(slot.model_dump(mode='json'), ensure_ascii=False, indent=2)}",
                    exc_info=True,
                )

        logger.info(
            f"[RECONCILE] Conversion completed: {result.success} success, {result.failed} failed"
        )
        return result

    def reconcile_many(
        self, batches: Iterable[Tuple[str, str, List[Slot]]]
    ) -> BatchReconcileResult:
        """Persist several (gym_id, source_id, slots) batches and sum the outcomes."""
        total = BatchReconcileResult()
        for gym_id, source_id, slots in batches:
            result = self.reconcile(gym_id, source_id, slots)
            total.total += 1
            total.success += result.success
            total.failed += result.failed
            total.errors.extend(result.errors)
        return total


# Global slot reconciler instance
slot_reconciler = SlotReconciler()

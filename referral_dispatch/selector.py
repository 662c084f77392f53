from collections.abc import Iterable
from datetime import datetime
import logging
from typing import Protocol

from referral_dispatch.schemas import CandidateRecord, TimeWindow, WorkItem


logger = logging.getLogger(__name__)


class CandidateStore(Protocol):
    def query_in_window(self, start: datetime, end: datetime) -> list[CandidateRecord]: ...


def dedupe_candidates(candidates: Iterable[CandidateRecord]) -> list[WorkItem]:
    """One work item per actor; the first record seen for an actor wins."""
    seen: set[int] = set()
    items: list[WorkItem] = []
    for candidate in candidates:
        if candidate.actor_id in seen:
            continue
        seen.add(candidate.actor_id)
        items.append(WorkItem(actor_id=candidate.actor_id, item_id=candidate.item_id))
    return items


class Selector:
    def __init__(self, store: CandidateStore) -> None:
        self.store = store

    def select(self, window: TimeWindow) -> list[WorkItem]:
        candidates = self.store.query_in_window(window.start, window.end)
        items = dedupe_candidates(candidates)
        logger.info(
            "work list selected",
            extra={"window": window.label, "candidates": len(candidates), "work_items": len(items)},
        )
        return items

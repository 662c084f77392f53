from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging

from referral_dispatch.actions import RegistrationAction
from referral_dispatch.schemas import DispatchOutcome, DispatchStatus, RunReport, TimeWindow, WorkItem


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, DispatchOutcome], None]


class Dispatcher:
    """Invokes the registration action exactly once per work item.

    Items run on at most ``max_workers`` threads. Outcomes are numbered in
    work-list order and the report keeps that order whatever the completion
    order was. Failed items are never retried.
    """

    def __init__(
        self,
        action: RegistrationAction,
        *,
        max_workers: int = 1,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.action = action
        self.max_workers = max_workers
        self.on_progress = on_progress

    def dispatch(self, items: Sequence[WorkItem], window: TimeWindow) -> RunReport:
        total = len(items)
        outcomes: list[DispatchOutcome] = []

        if self.max_workers == 1 or total <= 1:
            for sequence_no, item in enumerate(items, start=1):
                outcome = self._dispatch_one(sequence_no, item)
                outcomes.append(outcome)
                self._tick(len(outcomes), total, outcome)
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, total)) as executor:
                futures = [
                    executor.submit(self._dispatch_one, sequence_no, item)
                    for sequence_no, item in enumerate(items, start=1)
                ]
                for future in as_completed(futures):
                    outcome = future.result()
                    outcomes.append(outcome)
                    self._tick(len(outcomes), total, outcome)
            outcomes.sort(key=lambda outcome: outcome.sequence_no)

        report = RunReport(window=window, outcomes=tuple(outcomes))
        logger.info(
            "dispatch finished",
            extra={"total": report.total, "registered": report.registered, "errors": report.errors},
        )
        return report

    def _dispatch_one(self, sequence_no: int, item: WorkItem) -> DispatchOutcome:
        try:
            succeeded = self.action(item.item_id) is True
        except Exception:
            logger.exception("registration action raised", extra={"item_id": item.item_id})
            succeeded = False

        status = DispatchStatus.REGISTERED if succeeded else DispatchStatus.ERROR
        return DispatchOutcome(
            sequence_no=sequence_no,
            actor_id=item.actor_id,
            item_id=item.item_id,
            status=status,
        )

    def _tick(self, done: int, total: int, outcome: DispatchOutcome) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(done, total, outcome)
        except Exception:
            logger.exception("progress callback failed", extra={"item_id": outcome.item_id})

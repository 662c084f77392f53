import logging

from sqlalchemy.orm import Session, sessionmaker

from referral_dispatch.actions import RegistrationAction, SubprocessRegistrationAction
from referral_dispatch.config import Settings
from referral_dispatch.dispatcher import Dispatcher, ProgressCallback
from referral_dispatch.schemas import RunReport, TimeWindow
from referral_dispatch.selector import CandidateStore, Selector
from referral_dispatch.store import SqlCandidateStore, StoreUnavailableError


logger = logging.getLogger(__name__)


class RegistrationJob:
    def __init__(self, selector: Selector, dispatcher: Dispatcher) -> None:
        self.selector = selector
        self.dispatcher = dispatcher

    def run(self, window: TimeWindow) -> RunReport:
        logger.info("registration job started", extra={"window": window.label})
        try:
            items = self.selector.select(window)
        except StoreUnavailableError:
            logger.exception("candidate store unavailable", extra={"window": window.label})
            raise

        report = self.dispatcher.dispatch(items, window)
        if report.is_empty:
            logger.warning("no qualifying records", extra={"window": window.label})
        return report


def build_job(
    settings: Settings,
    session_factory: sessionmaker[Session],
    *,
    store: CandidateStore | None = None,
    action: RegistrationAction | None = None,
    on_progress: ProgressCallback | None = None,
) -> RegistrationJob:
    store = store or SqlCandidateStore(
        session_factory,
        item_prefix=settings.item_prefix,
        max_retries=settings.store_max_retries,
        retry_backoff_seconds=settings.store_retry_backoff_seconds,
    )
    action = action or SubprocessRegistrationAction(
        settings.register_command,
        timeout_seconds=settings.action_timeout_seconds,
    )
    dispatcher = Dispatcher(action, max_workers=settings.max_concurrent_actions, on_progress=on_progress)
    return RegistrationJob(Selector(store), dispatcher)

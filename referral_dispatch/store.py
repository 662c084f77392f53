from datetime import datetime
import logging

from sqlalchemy import Select, and_, func, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased, sessionmaker

from referral_dispatch.db_models import (
    Analysis,
    DepartmentStay,
    Diagnosis,
    Measurement,
    Result,
    User,
    UserSign,
)
from referral_dispatch.retry import RetryExhaustedError, call_with_retries
from referral_dispatch.schemas import CandidateRecord


logger = logging.getLogger(__name__)


class StoreUnavailableError(RuntimeError):
    pass


TRANSIENT_MESSAGES = (
    "database is locked",
    "could not connect",
    "connection refused",
    "server closed the connection",
    "lost connection",
    "gone away",
    "timeout expired",
)


def is_transient_store_error(exc: Exception) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    if exc.connection_invalidated:
        return True
    message = str(exc.orig).lower()
    return any(marker in message for marker in TRANSIENT_MESSAGES)


def eligible_results_query(start_ts: int, end_ts: int) -> Select:
    """Referral results submitted in ``[start_ts, end_ts]`` by fully profiled, signing users."""
    latest = aliased(DepartmentStay)
    latest_stay_id = (
        select(func.max(latest.id_dephsp))
        .where(latest.id_hsp == Result.id_hsp)
        .correlate(Result)
        .scalar_subquery()
    )

    return (
        select(Result.id_user_send, Result.id_res, Measurement.ds)
        .select_from(Result)
        .join(
            DepartmentStay,
            and_(
                DepartmentStay.id_hsp == Result.id_hsp,
                DepartmentStay.id_dephsp == latest_stay_id,
                DepartmentStay.mkb.is_not(None),
            ),
        )
        .join(Diagnosis, Diagnosis.code == DepartmentStay.mkb)
        .join(Measurement, and_(Measurement.id_hsp == DepartmentStay.id_hsp, Measurement.ds.is_not(None)))
        .join(Analysis, Analysis.id_anal == Result.id_anal)
        .join(UserSign, and_(UserSign.id_user == Result.id_user_send, UserSign.fingerprint.is_not(None)))
        .join(
            User,
            and_(
                User.id_user == Result.id_user_send,
                User.birth_date.is_not(None),
                User.snils.is_not(None),
                User.prvs.is_not(None),
                User.prvs_v015.is_not(None),
                User.id_nsipost.is_not(None),
                User.old_mark.is_(None),
            ),
        )
        .where(Result.date_in.between(start_ts, end_ts))
        .order_by(Result.id_user_send, Result.id_res)
    )


class SqlCandidateStore:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        item_prefix: str = "n-",
        max_retries: int = 0,
        retry_backoff_seconds: float = 0,
    ) -> None:
        self.session_factory = session_factory
        self.item_prefix = item_prefix
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds

    def query_in_window(self, start: datetime, end: datetime) -> list[CandidateRecord]:
        stmt = eligible_results_query(int(start.timestamp()), int(end.timestamp()))
        try:
            rows = call_with_retries(
                lambda: self._fetch(stmt),
                max_retries=self.max_retries,
                backoff_seconds=self.retry_backoff_seconds,
                should_retry=is_transient_store_error,
                operation="candidate query",
            )
        except RetryExhaustedError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"candidate query failed: {exc}") from exc

        logger.debug("candidate query returned rows", extra={"rows": len(rows)})
        return [
            CandidateRecord(actor_id=actor_id, item_id=f"{self.item_prefix}{id_res}", diagnosis=ds)
            for actor_id, id_res, ds in rows
        ]

    def _fetch(self, stmt: Select) -> list[tuple[int, int, str | None]]:
        with self.session_factory() as db:
            return [tuple(row) for row in db.execute(stmt).all()]

from collections.abc import Callable, Generator
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from referral_dispatch.config import Settings
from referral_dispatch.database import build_session_factory
from referral_dispatch.db_models import Analysis, DepartmentStay, Diagnosis, Measurement, Result, User, UserSign


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        app_name="referral-dispatch",
        database_url=f"sqlite:///{tmp_path / 'clinic.db'}",
        log_level="INFO",
        timezone="UTC",
        item_prefix="n-",
        register_command="true",
        action_timeout_seconds=5,
        max_concurrent_actions=1,
        store_max_retries=0,
        store_retry_backoff_seconds=0,
        schedule_hour=23,
        schedule_minute=0,
    )


@pytest.fixture()
def session_factory(test_settings: Settings) -> Generator[sessionmaker[Session], None, None]:
    factory = build_session_factory(test_settings.database_url, create_schema=True)
    with factory() as db:
        db.add(Diagnosis(code="J18.9", name="Pneumonia, unspecified"))
        db.add(Analysis(id_anal=1, name="Chest X-ray"))
        db.commit()
    yield factory


@pytest.fixture()
def add_user(session_factory: sessionmaker[Session]) -> Callable[..., None]:
    def _add(user_id: int, *, fingerprint: str | None = "AB:CD", **overrides: object) -> None:
        fields: dict[str, object] = {
            "full_name": f"Doctor {user_id}",
            "birth_date": date(1980, 1, 1),
            "snils": "112-233-445 95",
            "prvs": 76,
            "prvs_v015": 1122,
            "id_nsipost": 3,
            "old_mark": None,
        }
        fields.update(overrides)
        with session_factory() as db:
            db.add(User(id_user=user_id, **fields))
            db.add(UserSign(id_user=user_id, fingerprint=fingerprint))
            db.commit()

    return _add


@pytest.fixture()
def add_result(session_factory: sessionmaker[Session]) -> Callable[..., None]:
    def _add(
        id_res: int,
        user_id: int,
        date_in: int,
        *,
        mkb: str | None = "J18.9",
        ds: str | None = "community-acquired pneumonia",
        earlier_mkb: str | None = None,
    ) -> None:
        hsp = id_res
        with session_factory() as db:
            if earlier_mkb is not None:
                db.add(DepartmentStay(id_dephsp=hsp * 10, id_hsp=hsp, mkb=earlier_mkb))
            db.add(DepartmentStay(id_dephsp=hsp * 10 + 1, id_hsp=hsp, mkb=mkb))
            db.add(Measurement(id_measur=hsp, id_hsp=hsp, ds=ds))
            db.add(Result(id_res=id_res, id_hsp=hsp, id_anal=1, id_user_send=user_id, date_in=date_in))
            db.commit()

    return _add

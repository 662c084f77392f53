from datetime import UTC, date, datetime
import os
from pathlib import Path
import shlex
import subprocess
import sys

from referral_dispatch.database import build_session_factory
from referral_dispatch.db_models import Analysis, DepartmentStay, Diagnosis, Measurement, Result, User, UserSign


# Exits non-zero for n-101 only.
REGISTER_SCRIPT = "import sys; sys.exit(1 if sys.argv[-1] == 'n-101' else 0)"


def _base_env(tmp_path: Path) -> dict[str, str]:
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{tmp_path / 'cli.db'}"
    env["TIMEZONE"] = "UTC"
    env["REGISTER_COMMAND"] = shlex.join([sys.executable, "-c", REGISTER_SCRIPT])
    env["ACTION_TIMEOUT_SECONDS"] = "30"
    env["STORE_MAX_RETRIES"] = "0"
    env["STORE_RETRY_BACKOFF_SECONDS"] = "0"
    return env


def _run_cli(tmp_path: Path, *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "referral_dispatch.main", "run", *args],
        cwd=Path(__file__).resolve().parents[1],
        env=_base_env(tmp_path),
        check=False,
        capture_output=True,
        text=True,
    )


def _seed(tmp_path: Path, day: date, results: list[tuple[int, int]]) -> None:
    factory = build_session_factory(f"sqlite:///{tmp_path / 'cli.db'}", create_schema=True)
    date_in = int(datetime(day.year, day.month, day.day, 12, tzinfo=UTC).timestamp())
    with factory() as db:
        db.add(Diagnosis(code="I10", name="Essential hypertension"))
        db.add(Analysis(id_anal=1, name="ECG"))
        for user_id in sorted({user_id for _, user_id in results}):
            db.add(
                User(
                    id_user=user_id,
                    birth_date=date(1975, 5, 5),
                    snils="112-233-445 95",
                    prvs=76,
                    prvs_v015=1122,
                    id_nsipost=3,
                )
            )
            db.add(UserSign(id_user=user_id, fingerprint="AB:CD"))
        for id_res, user_id in results:
            db.add(DepartmentStay(id_dephsp=id_res, id_hsp=id_res, mkb="I10"))
            db.add(Measurement(id_measur=id_res, id_hsp=id_res, ds="hypertension"))
            db.add(Result(id_res=id_res, id_hsp=id_res, id_anal=1, id_user_send=user_id, date_in=date_in))
        db.commit()


def test_cli_reports_each_physician_once_and_fails_on_item_errors(tmp_path: Path) -> None:
    day = date(datetime.now(UTC).year, 3, 12)
    _seed(tmp_path, day, [(100, 1), (101, 2), (102, 1)])

    proc = _run_cli(tmp_path, "--month", "03", "--day", "12")

    assert proc.returncode == 1
    assert f"Registration dispatch for {day.isoformat()}" in proc.stdout
    assert "n-100 | registered" in proc.stdout
    assert "n-101 | error" in proc.stdout
    assert "n-102" not in proc.stdout
    assert "processing complete, 2 items" in proc.stdout


def test_cli_returns_zero_when_all_items_register(tmp_path: Path) -> None:
    day = date(datetime.now(UTC).year, 3, 12)
    _seed(tmp_path, day, [(100, 1), (103, 3)])

    proc = _run_cli(tmp_path, "-m", "03", "-d", "12")

    assert proc.returncode == 0
    assert "processing complete, 2 items (registered=2 errors=0)" in proc.stdout


def test_cli_partial_override_warns_and_uses_today(tmp_path: Path) -> None:
    _seed(tmp_path, date(2000, 1, 1), [])

    proc = _run_cli(tmp_path, "--day", "15")

    assert proc.returncode == 0
    assert "--day given without --month" in proc.stdout
    assert "no qualifying records found" in proc.stdout


def test_cli_exits_with_store_error_when_database_is_missing(tmp_path: Path) -> None:
    proc = _run_cli(tmp_path)

    assert proc.returncode == 2
    assert "candidate store unavailable" in proc.stderr


def test_cli_reports_invalid_configuration_without_traceback(tmp_path: Path) -> None:
    env = _base_env(tmp_path)
    env["TIMEZONE"] = "Mars/Olympus_Mons"

    proc = subprocess.run(
        [sys.executable, "-m", "referral_dispatch.main", "run"],
        cwd=Path(__file__).resolve().parents[1],
        env=env,
        check=False,
        capture_output=True,
        text=True,
    )

    assert proc.returncode == 3
    assert "invalid configuration" in proc.stderr
    assert "TIMEZONE" in proc.stderr
    assert "Traceback" not in proc.stderr

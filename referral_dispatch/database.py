from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from referral_dispatch.db_models import Base


def build_session_factory(database_url: str, *, create_schema: bool = False) -> sessionmaker[Session]:
    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, future=True, connect_args=connect_args)
    if create_schema:
        # Local copies only; the production schema is owned by the clinical system.
        Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

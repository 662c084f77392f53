from datetime import date

from sqlalchemy import BigInteger, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "USERS"

    id_user: Mapped[int] = mapped_column("ID_USER", Integer, primary_key=True)
    full_name: Mapped[str | None] = mapped_column("FIO", String(255), nullable=True)
    birth_date: Mapped[date | None] = mapped_column("D_BIR", Date, nullable=True)
    snils: Mapped[str | None] = mapped_column("SNILS", String(14), nullable=True)
    prvs: Mapped[int | None] = mapped_column("PRVS", Integer, nullable=True)
    prvs_v015: Mapped[int | None] = mapped_column("PRVS_V015", Integer, nullable=True)
    id_nsipost: Mapped[int | None] = mapped_column("ID_NSIPOST", Integer, nullable=True)
    old_mark: Mapped[int | None] = mapped_column("OLD_MARK", Integer, nullable=True)


class UserSign(Base):
    __tablename__ = "USER_SIGN"

    id_user: Mapped[int] = mapped_column("ID_USER", ForeignKey("USERS.ID_USER"), primary_key=True)
    fingerprint: Mapped[str | None] = mapped_column("FINGERPRINT", String(128), nullable=True)


class Diagnosis(Base):
    __tablename__ = "MKB"

    code: Mapped[str] = mapped_column("MKB", String(16), primary_key=True)
    name: Mapped[str | None] = mapped_column("NAME", Text, nullable=True)


class DepartmentStay(Base):
    __tablename__ = "DEP_HSP"

    id_dephsp: Mapped[int] = mapped_column("ID_DEPHSP", Integer, primary_key=True)
    id_hsp: Mapped[int] = mapped_column("ID_HSP", Integer, index=True)
    mkb: Mapped[str | None] = mapped_column("MKB", String(16), nullable=True)


class Measurement(Base):
    __tablename__ = "MEASUR"

    id_measur: Mapped[int] = mapped_column("ID_MEASUR", Integer, primary_key=True)
    id_hsp: Mapped[int] = mapped_column("ID_HSP", Integer, index=True)
    ds: Mapped[str | None] = mapped_column("DS", Text, nullable=True)


class Analysis(Base):
    __tablename__ = "ANALYSIS"

    id_anal: Mapped[int] = mapped_column("ID_ANAL", Integer, primary_key=True)
    name: Mapped[str | None] = mapped_column("NAME", String(255), nullable=True)


class Result(Base):
    __tablename__ = "RESULTS"

    id_res: Mapped[int] = mapped_column("ID_RES", Integer, primary_key=True)
    id_hsp: Mapped[int] = mapped_column("ID_HSP", Integer, index=True)
    id_anal: Mapped[int] = mapped_column("ID_ANAL", Integer)
    id_user_send: Mapped[int] = mapped_column("ID_USER_SEND", Integer, index=True)
    # Unix epoch seconds.
    date_in: Mapped[int] = mapped_column("DATE_IN", BigInteger, index=True)

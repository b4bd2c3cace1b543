"""
FieldSync Backend: Report SQLAlchemy Models
============================================

What:  ORM models for one field report (`reports`) and its five child tables.
How:   Each child row references its parent through `report_id`; children
       have no identity beyond (report_id, their own surrogate key).

Tables:
    reports               one row per synced report (server-generated id)
    report_users          additional passengers: amount, boarding/alighting stop
    report_observations   ordered free-text observations (obs_index from 0)
    report_reintegros     reimbursements (reintegro_index from 1) + raw text
    report_ticket_marked  one row per marked ticket number, by fare tier
    report_ticket_ranges  one row per fare tier: min and max ticket number

Query Patterns:
    - Dashboard listing: ORDER BY created_at DESC LIMIT 500
      → idx_reports_created_at
    - Children of one report: WHERE report_id = :id → per-table report_id index
"""

from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column

from fieldsync.database import Base

SYNC_STATUS_SYNCED = "synced"

# Money columns: two decimal places
_MONEY = Numeric(12, 2)
# SQLite only autoincrements a column declared exactly INTEGER PRIMARY KEY
_TICKET_NUMBER = BigInteger().with_variant(Integer, "sqlite")


def _report_fk() -> Mapped[int]:
    return mapped_column(
        ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class Report(Base):
    """
    Parent row of one field submission.

    The id is generated by the datastore and read back with
    INSERT ... RETURNING in the same statement.
    """

    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Reserved for client-side correlation; the server always stores NULL
    local_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    fecha: Mapped[date | None] = mapped_column(Date, nullable=True)
    hora: Mapped[time | None] = mapped_column(Time, nullable=True)
    padron: Mapped[str | None] = mapped_column(Text, nullable=True)
    lugar: Mapped[str | None] = mapped_column(Text, nullable=True)
    operador: Mapped[str | None] = mapped_column(Text, nullable=True)
    sentido: Mapped[str | None] = mapped_column(Text, nullable=True)
    tipo_incidencia: Mapped[str | None] = mapped_column(Text, nullable=True)
    falta: Mapped[str] = mapped_column(Text, nullable=False, default="N/A")
    cantidad: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    lugar_bajada_final: Mapped[str | None] = mapped_column(Text, nullable=True)
    hora_bajada_final: Mapped[time | None] = mapped_column(Time, nullable=True)
    inspector_cod: Mapped[str | None] = mapped_column(Text, nullable=True)
    inspector_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    sync_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SYNC_STATUS_SYNCED
    )

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, fecha={self.fecha}, padron='{self.padron}')>"


class ReportUser(Base):
    __tablename__ = "report_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[int] = _report_fk()
    dinero: Mapped[Decimal] = mapped_column(_MONEY, nullable=False, default=0)
    lugar_subida: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lugar_bajada: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ReportObservation(Base):
    __tablename__ = "report_observations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[int] = _report_fk()
    obs_index: Mapped[int] = mapped_column(Integer, nullable=False)
    texto: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ReportReintegro(Base):
    __tablename__ = "report_reintegros"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[int] = _report_fk()
    reintegro_index: Mapped[int] = mapped_column(Integer, nullable=False)
    monto: Mapped[Decimal] = mapped_column(_MONEY, nullable=False, default=0)
    raw_text: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ReportTicketMarked(Base):
    __tablename__ = "report_ticket_marked"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[int] = _report_fk()
    tarifa: Mapped[str] = mapped_column(Text, nullable=False)
    numero: Mapped[int] = mapped_column(_TICKET_NUMBER, nullable=False, default=0)


class ReportTicketRange(Base):
    __tablename__ = "report_ticket_ranges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[int] = _report_fk()
    tarifa: Mapped[str] = mapped_column(Text, nullable=False)
    min_numero: Mapped[int] = mapped_column(_TICKET_NUMBER, nullable=False, default=0)
    max_numero: Mapped[int] = mapped_column(_TICKET_NUMBER, nullable=False, default=0)


# Dashboard listing: newest first
Index("idx_reports_created_at", Report.created_at.desc())

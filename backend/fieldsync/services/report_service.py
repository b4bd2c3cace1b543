"""
FieldSync Backend: Report Service (ingestion transaction and listing)
======================================================================

What:  Persists one submitted field report (parent row + five child
       collections) atomically, and lists recent reports for the dashboard.
How:   Stateless service; receives the request-scoped AsyncSession per call.
Who:   Called by POST /sync-report and GET /get-reports.

Ingestion Flow (POST /sync-report):
    ┌───────────┐    ┌────────────┐    ┌───────────────────┐    ┌───────────┐
    │ Validate  │───▶│ Normalize  │───▶│ INSERT reports    │───▶│ INSERT    │
    │ payload   │    │ scalars    │    │ RETURNING id      │    │ children  │
    └───────────┘    └────────────┘    └───────────────────┘    └───────────┘
                                        └────────── one transaction ──────────┘

Invariants:
    - The report id comes back from the INSERT statement itself; it is never
      looked up afterwards (a max(id) query can return another device's report).
    - No child row is written without a parent id.
    - Parent and children commit together or not at all. A failure at any
      point rolls back the whole unit, so an orphaned parent is never visible.
    - A report with no children is valid.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple, Type

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsync.database import Base, describe_db_error
from fieldsync.exceptions import DatabaseError, FieldSyncError, ValidationError
from fieldsync.models.report import (
    SYNC_STATUS_SYNCED,
    Report,
    ReportObservation,
    ReportReintegro,
    ReportTicketMarked,
    ReportTicketRange,
    ReportUser,
)
from fieldsync.schemas.report import (
    ReportListResponse,
    ReportPayload,
    ReportSummary,
    SyncReportRequest,
    SyncReportResponse,
)
from fieldsync.services.normalization import (
    INT32_MAX,
    INT64_MAX,
    clean_text,
    coerce_text,
    normalize_date,
    normalize_time,
    parse_amount,
    parse_int,
)

logger = logging.getLogger(__name__)

# Sentinel stored when the client sends no fault description
MISSING_FAULT = "N/A"

# Dashboard listing size
LIST_LIMIT = 500

ChildRows = List[Tuple[Type[Base], List[Dict[str, Any]]]]


def build_report_values(report: ReportPayload, now: datetime) -> Dict[str, Any]:
    """Column values of the parent row, with every scalar normalized."""
    falta = clean_text(report.falta)
    return {
        "local_id": None,
        "fecha": normalize_date(report.fecha),
        "hora": normalize_time(report.hora),
        "padron": clean_text(report.padron),
        "lugar": clean_text(report.lugar),
        "operador": clean_text(report.operador),
        "sentido": clean_text(report.sentido),
        "tipo_incidencia": clean_text(report.tipo_incidencia),
        "falta": falta if falta is not None else MISSING_FAULT,
        "cantidad": parse_int(report.cantidad, max_abs=INT32_MAX),
        "lugar_bajada_final": clean_text(report.lugar_bajada_final),
        "hora_bajada_final": normalize_time(report.hora_bajada_final),
        "inspector_cod": clean_text(report.inspector_cod),
        "inspector_name": clean_text(report.inspector_name),
        "full_text": clean_text(report.full_text),
        "created_at": now,
        "synced_at": now,
        "sync_status": SYNC_STATUS_SYNCED,
    }


def build_child_rows(report_id: int, report: ReportPayload) -> ChildRows:
    """
    One row per logical child, each carrying `report_id`.

    Fan-out:
        usuariosAdicionales  one row per passenger
        observaciones        one row per text, obs_index from 0 in list order
        reintegradoMontos    one row per amount, reintegro_index from 1
        boletosMarcados      one row per (tier, number)
        rangoBoletos         one row per tier
    Collections that produced no rows are omitted.
    """
    users = [
        {
            "report_id": report_id,
            "dinero": parse_amount(user.dinero),
            "lugar_subida": user.lugar_subida or "",
            "lugar_bajada": user.lugar_bajada or "",
        }
        for user in report.usuarios_adicionales
    ]

    observations = [
        {"report_id": report_id, "obs_index": index, "texto": text}
        for index, text in enumerate(report.observaciones)
    ]

    reimbursements = [
        {
            "report_id": report_id,
            "reintegro_index": index,
            "monto": parse_amount(raw),
            "raw_text": coerce_text(raw) or "",
        }
        for index, raw in enumerate(report.reintegrado_montos, start=1)
    ]

    marked = [
        {
            "report_id": report_id,
            "tarifa": tier,
            "numero": parse_int(number, max_abs=INT64_MAX),
        }
        for tier, numbers in report.boletos_marcados.items()
        for number in numbers
    ]

    ranges = [
        {
            "report_id": report_id,
            "tarifa": tier,
            "min_numero": parse_int(bounds.minimum, max_abs=INT64_MAX),
            "max_numero": parse_int(bounds.maximum, max_abs=INT64_MAX),
        }
        for tier, bounds in report.rango_boletos.items()
    ]

    batches: ChildRows = [
        (ReportUser, users),
        (ReportObservation, observations),
        (ReportReintegro, reimbursements),
        (ReportTicketMarked, marked),
        (ReportTicketRange, ranges),
    ]
    return [(model, rows) for model, rows in batches if rows]


class ReportService:
    """
    Business logic for field reports.

    Error Handling Strategy:
        Validation problems raise ValidationError before the datastore is
        touched. Every datastore failure inside the ingestion unit rolls the
        unit back and is re-raised as DatabaseError carrying the driver
        message. Nothing is retried.
    """

    async def sync_report(
        self, db: AsyncSession, request: SyncReportRequest
    ) -> SyncReportResponse:
        """
        Persist one report and all of its children atomically.

        Workflow Steps:
            1. Reject a request without a report object
            2. Normalize parent scalars (dates, times, quantity, blank text)
            3. INSERT the parent ... RETURNING id (one statement)
            4. No id → fail; children are never attempted
            5. Build the child rows referencing the id
            6. Bulk INSERT each child table
            7. Commit the unit; return the id

        Raises:
            ValidationError: the request has no report (→ 400)
            DatabaseError: any write failed; nothing was persisted (→ 500)
        """
        if request.report is None:
            raise ValidationError(
                message='Falta el objeto "report" en el cuerpo de la petición.',
                fields=["report"],
            )

        report = request.report
        parent_values = build_report_values(report, datetime.now(timezone.utc))
        child_count = 0

        try:
            async with db.begin():
                result = await db.execute(
                    insert(Report).values(**parent_values).returning(Report.id)
                )
                report_id = result.scalar_one_or_none()
                if report_id is None:
                    raise DatabaseError(
                        message="Error interno al sincronizar el informe.",
                        detail="No se obtuvo ID del reporte al insertar.",
                    )

                for model, rows in build_child_rows(report_id, report):
                    await db.execute(insert(model), rows)
                    child_count += len(rows)

        except FieldSyncError:
            raise
        except Exception as e:
            logger.error("Report sync rolled back: %s", describe_db_error(e), exc_info=True)
            raise DatabaseError(
                message="Error interno al sincronizar el informe.",
                detail=describe_db_error(e),
                context={"error_type": type(e).__name__},
            )

        logger.info("Report %s synced with %d child rows", report_id, child_count)
        return SyncReportResponse(remoteId=report_id)

    async def list_reports(self, db: AsyncSession) -> ReportListResponse:
        """
        The most recent reports, newest first.

        Query plan:
            SELECT <summary columns> FROM reports
            ORDER BY created_at DESC, id DESC LIMIT 500
            → idx_reports_created_at

        Raises:
            DatabaseError: query failed (→ 500 with driver message)
        """
        try:
            result = await db.execute(
                select(
                    Report.id,
                    Report.fecha,
                    Report.hora,
                    Report.padron,
                    Report.operador,
                    Report.tipo_incidencia,
                    Report.falta,
                    Report.cantidad,
                    Report.inspector_name,
                    Report.local_id,
                )
                .order_by(Report.created_at.desc(), Report.id.desc())
                .limit(LIST_LIMIT)
            )
            rows = result.all()
        except Exception as e:
            logger.error("Database error listing reports: %s", describe_db_error(e))
            raise DatabaseError(
                message="Error al leer la base de datos.",
                detail=describe_db_error(e),
            )

        reports = [ReportSummary.model_validate(row, from_attributes=True) for row in rows]
        logger.info("Returning %d reports to the dashboard", len(reports))
        return ReportListResponse(count=len(reports), reports=reports)


# Stateless; shared by all requests
report_service = ReportService()

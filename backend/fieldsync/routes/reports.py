"""
FieldSync Backend: Report Route Handlers
=========================================

What:  POST /sync-report (mobile app upload) and GET /get-reports (dashboard).
How:   Decode, delegate to ReportService, return. The ingestion transaction
       lives entirely in the service; these handlers only shape HTTP.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsync.database import get_db_session
from fieldsync.schemas.common import ErrorResponse
from fieldsync.schemas.report import (
    ReportListResponse,
    SyncReportRequest,
    SyncReportResponse,
)
from fieldsync.services.report_service import report_service

router = APIRouter(tags=["Reports"])


@router.post(
    "/sync-report",
    response_model=SyncReportResponse,
    responses={
        400: {"description": "Request has no report object", "model": ErrorResponse},
        500: {"description": "Report could not be persisted; nothing was written", "model": ErrorResponse},
    },
    summary="Persist one field report with all of its child records",
)
async def sync_report(
    payload: SyncReportRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SyncReportResponse:
    """
    Store one report atomically and return its server id as `remoteId`.

    Malformed numeric fields are stored as 0 and unparseable dates as null;
    they never fail the request.
    """
    return await report_service.sync_report(db, payload)


@router.get(
    "/get-reports",
    response_model=ReportListResponse,
    responses={500: {"description": "Datastore error", "model": ErrorResponse}},
    summary="List the 500 most recent reports",
)
async def get_reports(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> ReportListResponse:
    result = await report_service.list_reports(db)
    # Dashboard polls; always show fresh rows
    response.headers["Cache-Control"] = "no-store"
    return result

"""ORM models. Importing this package registers every table on Base.metadata."""

from fieldsync.models.inspector import Inspector
from fieldsync.models.report import (
    Report,
    ReportObservation,
    ReportReintegro,
    ReportTicketMarked,
    ReportTicketRange,
    ReportUser,
)

__all__ = [
    "Inspector",
    "Report",
    "ReportObservation",
    "ReportReintegro",
    "ReportTicketMarked",
    "ReportTicketRange",
    "ReportUser",
]

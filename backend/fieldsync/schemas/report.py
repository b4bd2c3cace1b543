"""
FieldSync Backend: Report Request/Response Schemas
===================================================

What:  Pydantic models for POST /sync-report and GET /get-reports.
How:   Decoding is lenient. Scalars are kept close to what the client sent
       (numbers and dates are interpreted later by ReportService, field by
       field); collections of the wrong JSON type decode as empty, and
       malformed entries inside a collection are dropped.

Payload shape (wire names):
    {
      "report": {
        "fecha": "04/10/2001", "hora": "14:30", "padron": "1203", ...,
        "usuariosAdicionales": [{"dinero": "10", "lugarSubida": "A", "lugarBajada": "B"}],
        "observaciones": ["...", "..."],
        "reintegradoMontos": ["12.50", "abc"],
        "boletosMarcados": {"A": [1001, 1002], "B": [2001]},
        "rangoBoletos": {"A": {"min": 1000, "max": 1050}}
      }
    }
"""

from datetime import date, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from fieldsync.services.normalization import coerce_text

_PAYLOAD_CONFIG = {"populate_by_name": True, "extra": "ignore"}


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class AdditionalUserPayload(BaseModel):
    dinero: Any = None
    lugar_subida: Optional[str] = Field(default=None, alias="lugarSubida")
    lugar_bajada: Optional[str] = Field(default=None, alias="lugarBajada")

    model_config = _PAYLOAD_CONFIG

    @field_validator("lugar_subida", "lugar_bajada", mode="before")
    @classmethod
    def _scalar_to_text(cls, v):
        return coerce_text(v)


class TicketRangePayload(BaseModel):
    minimum: Any = Field(default=None, alias="min")
    maximum: Any = Field(default=None, alias="max")

    model_config = _PAYLOAD_CONFIG


class ReportPayload(BaseModel):
    """One field report as submitted by the mobile app."""

    fecha: Optional[str] = None
    hora: Optional[str] = None
    padron: Optional[str] = None
    lugar: Optional[str] = None
    operador: Optional[str] = None
    sentido: Optional[str] = None
    tipo_incidencia: Optional[str] = Field(default=None, alias="tipoIncidencia")
    falta: Optional[str] = None
    cantidad: Any = None
    lugar_bajada_final: Optional[str] = Field(default=None, alias="lugarBajadaFinal")
    hora_bajada_final: Optional[str] = Field(default=None, alias="horaBajadaFinal")
    inspector_cod: Optional[str] = Field(default=None, alias="inspectorCod")
    inspector_name: Optional[str] = Field(default=None, alias="inspectorName")
    full_text: Optional[str] = Field(default=None, alias="fullText")

    usuarios_adicionales: List[AdditionalUserPayload] = Field(
        default_factory=list, alias="usuariosAdicionales"
    )
    observaciones: List[str] = Field(default_factory=list)
    reintegrado_montos: List[Any] = Field(default_factory=list, alias="reintegradoMontos")
    # tier → ticket numbers
    boletos_marcados: Dict[str, List[Any]] = Field(
        default_factory=dict, alias="boletosMarcados"
    )
    # tier → {min, max}
    rango_boletos: Dict[str, TicketRangePayload] = Field(
        default_factory=dict, alias="rangoBoletos"
    )

    model_config = _PAYLOAD_CONFIG

    @field_validator(
        "fecha", "hora", "padron", "lugar", "operador", "sentido",
        "tipo_incidencia", "falta", "lugar_bajada_final", "hora_bajada_final",
        "inspector_cod", "inspector_name", "full_text",
        mode="before",
    )
    @classmethod
    def _scalar_to_text(cls, v):
        return coerce_text(v)

    @field_validator("usuarios_adicionales", mode="before")
    @classmethod
    def _users_list(cls, v):
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]

    @field_validator("observaciones", mode="before")
    @classmethod
    def _observation_list(cls, v):
        if not isinstance(v, list):
            return []
        return [coerce_text(item) or "" for item in v]

    @field_validator("reintegrado_montos", mode="before")
    @classmethod
    def _amount_list(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("boletos_marcados", mode="before")
    @classmethod
    def _marked_map(cls, v):
        if not isinstance(v, dict):
            return {}
        return {str(tier): numbers for tier, numbers in v.items() if isinstance(numbers, list)}

    @field_validator("rango_boletos", mode="before")
    @classmethod
    def _range_map(cls, v):
        if not isinstance(v, dict):
            return {}
        return {str(tier): bounds for tier, bounds in v.items() if isinstance(bounds, dict)}


class SyncReportRequest(BaseModel):
    report: Optional[ReportPayload] = None

    model_config = _PAYLOAD_CONFIG


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SyncReportResponse(BaseModel):
    success: bool = True
    message: str = "Informe sincronizado correctamente."
    remoteId: int = Field(description="Server-generated report id")


class ReportSummary(BaseModel):
    """Dashboard row: the summary columns of one report."""

    id: int
    fecha: Optional[date] = None
    hora: Optional[time] = None
    padron: Optional[str] = None
    operador: Optional[str] = None
    tipo_incidencia: Optional[str] = None
    falta: Optional[str] = None
    cantidad: int = 0
    inspector_name: Optional[str] = None
    local_id: Optional[str] = None

    model_config = {"from_attributes": True}


class ReportListResponse(BaseModel):
    success: bool = True
    count: int
    reports: List[ReportSummary]

"""
FieldSync Backend: Inspector Request/Response Schemas
======================================================

What:  Pydantic models for POST /login and POST /register.
How:   Wire names are the mobile client's (camelCase / Spanish, including the
       "contraseña" key); Python attributes are English via aliases.
       Every request field is optional at the schema level so that missing
       fields produce the API's own 400 envelope, not FastAPI's 422.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fieldsync.services.normalization import coerce_text

_REQUEST_CONFIG = {"populate_by_name": True, "extra": "ignore"}


class LoginRequest(BaseModel):
    inspector_id: Optional[str] = Field(default=None, alias="idInspector")
    password: Optional[str] = Field(default=None)

    model_config = _REQUEST_CONFIG

    @field_validator("inspector_id", "password", mode="before")
    @classmethod
    def _scalar_to_text(cls, v):
        return coerce_text(v)


class RegisterRequest(BaseModel):
    """
    What:  New inspector payload.
    Note:  `idInspector` is optional; when blank the inspector code is used.
    """

    name: Optional[str] = Field(default=None, alias="nombre")
    surname: Optional[str] = Field(default=None, alias="apellido")
    code: Optional[str] = Field(default=None, alias="codigo")
    birth_date: Optional[str] = Field(default=None, alias="fechaNac")
    stop_assignment: Optional[str] = Field(default=None, alias="paradero")
    password: Optional[str] = Field(default=None, alias="contraseña")
    inspector_id: Optional[str] = Field(default=None, alias="idInspector")

    model_config = _REQUEST_CONFIG

    @field_validator("*", mode="before")
    @classmethod
    def _scalar_to_text(cls, v):
        return coerce_text(v)


class InspectorPublic(BaseModel):
    """Public subset of an inspector record returned by a successful login."""

    idInspector: str
    codeInsp: str
    nombre: str


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login exitoso."
    inspector: InspectorPublic


class RegisterResponse(BaseModel):
    success: bool = True
    message: str = "Inspector registrado exitosamente."

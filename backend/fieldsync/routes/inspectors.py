"""
FieldSync Backend: Inspector Route Handlers
============================================

What:  POST /login and POST /register for the mobile app.
How:   Thin handlers: decode the body, delegate to InspectorService, return
       the response model. Errors propagate to the global handlers.

Status codes:
    /login     200 ok · 400 missing fields · 401 no match · 500 datastore
    /register  201 created · 400 missing fields · 409 duplicate id · 500 datastore
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsync.database import get_db_session
from fieldsync.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from fieldsync.schemas.common import ErrorResponse
from fieldsync.services.inspector_service import inspector_service

router = APIRouter(tags=["Inspectors"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing identifier or password", "model": ErrorResponse},
        401: {"description": "No matching credentials", "model": ErrorResponse},
        500: {"description": "Datastore error", "model": ErrorResponse},
    },
    summary="Authenticate an inspector",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await inspector_service.login(db, payload)


@router.post(
    "/register",
    status_code=201,
    response_model=RegisterResponse,
    responses={
        400: {"description": "Missing required fields", "model": ErrorResponse},
        409: {"description": "Inspector id already registered", "model": ErrorResponse},
        500: {"description": "Datastore error", "model": ErrorResponse},
    },
    summary="Register a new inspector",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    """
    Register an inspector. `idInspector` is optional; the inspector code is
    used as the identifier when it is blank.
    """
    return await inspector_service.register(db, payload)

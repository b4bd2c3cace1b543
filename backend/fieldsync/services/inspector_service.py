"""
FieldSync Backend: Inspector Service (login and registration)
==============================================================

What:  Credential verification and inspector registration.
How:   Stateless service; receives the request-scoped AsyncSession per call.
Who:   Called by the /login and /register route handlers.

Login:
    identifier + secret required → load by identifier → constant-time compare
    of the stored secret → public subset {idInspector, codeInsp, nombre}.
    Unknown identifier and wrong secret raise the same AuthenticationError.

Registration:
    required fields → resolve id (idInspector, else codigo) → existence check
    → insert, all inside one transaction. A failed existence check is a
    failure (DatabaseError); the insert is never attempted in that case.
"""

import hmac
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsync.database import describe_db_error
from fieldsync.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    FieldSyncError,
    ValidationError,
)
from fieldsync.models.inspector import Inspector
from fieldsync.schemas.auth import (
    InspectorPublic,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from fieldsync.services.normalization import normalize_date

logger = logging.getLogger(__name__)


class InspectorService:
    """Business logic for inspector accounts."""

    async def login(self, db: AsyncSession, payload: LoginRequest) -> LoginResponse:
        """
        Verify an identifier/secret pair.

        Raises:
            ValidationError: identifier or secret missing (no lookup happens)
            AuthenticationError: no inspector matches both values
            DatabaseError: the lookup failed (generic message, no detail)
        """
        inspector_id = (payload.inspector_id or "").strip()
        password = payload.password or ""
        if not inspector_id or not password:
            raise ValidationError(
                message="Por favor, proporcione ID de Inspector y contraseña.",
                fields=[
                    name for name, value in
                    (("idInspector", inspector_id), ("password", password)) if not value
                ],
            )

        logger.info("Login attempt for inspector %s", inspector_id)

        try:
            result = await db.execute(
                select(Inspector).where(Inspector.inspector_id == inspector_id)
            )
            matches = list(result.scalars().all())
        except Exception as e:
            logger.error("Database error during login for %s: %s", inspector_id, describe_db_error(e))
            raise DatabaseError(
                message="Error de conexión o autenticación.",
                context={"error_type": type(e).__name__},
            )

        if len(matches) != 1 or not hmac.compare_digest(
            matches[0].secret.encode("utf-8"), password.encode("utf-8")
        ):
            logger.info("Login failed for inspector %s", inspector_id)
            raise AuthenticationError()

        inspector = matches[0]
        logger.info("Login succeeded for inspector %s", inspector_id)
        return LoginResponse(
            inspector=InspectorPublic(
                idInspector=inspector.inspector_id,
                codeInsp=inspector.code,
                nombre=inspector.name,
            )
        )

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> RegisterResponse:
        """
        Register a new inspector.

        Workflow Steps:
            1. Resolve the identifier: trimmed idInspector if non-blank, else codigo
            2. Reject missing required fields (before any datastore access)
            3. Existence check on the identifier → ConflictError when taken
            4. Insert with a server-assigned registration timestamp

        The birth date is normalized from DD/MM/YYYY; an unparseable value is
        stored as NULL.

        Raises:
            ValidationError: a required field is blank
            ConflictError: the identifier is already registered
            DatabaseError: existence check or insert failed
        """
        code = (payload.code or "").strip()
        inspector_id = (payload.inspector_id or "").strip() or code

        required = {
            "nombre": payload.name,
            "apellido": payload.surname,
            "codigo": code,
            "fechaNac": payload.birth_date,
            "paradero": payload.stop_assignment,
            "contraseña": payload.password,
            "idInspector": inspector_id,
        }
        missing = [field for field, value in required.items() if not (value or "").strip()]
        if missing:
            raise ValidationError(
                message="Faltan datos obligatorios para el registro.",
                fields=missing,
            )

        try:
            async with db.begin():
                try:
                    existing = await db.execute(
                        select(Inspector.inspector_id).where(
                            Inspector.inspector_id == inspector_id
                        )
                    )
                    taken = existing.first() is not None
                except Exception as e:
                    # Fail closed: an unverifiable identifier is never inserted
                    logger.error(
                        "Duplicate check failed for inspector %s: %s",
                        inspector_id,
                        describe_db_error(e),
                    )
                    raise DatabaseError(
                        message="No se pudo verificar si el ID de inspector ya existe.",
                        detail=describe_db_error(e),
                    )

                if taken:
                    logger.info("Registration rejected, inspector %s already exists", inspector_id)
                    raise ConflictError(context={"inspector_id": inspector_id})

                db.add(
                    Inspector(
                        inspector_id=inspector_id,
                        code=code,
                        name=payload.name.strip(),
                        surname=payload.surname.strip(),
                        stop_assignment=payload.stop_assignment.strip(),
                        secret=payload.password,
                        birth_date=normalize_date(payload.birth_date),
                        registered_at=datetime.now(timezone.utc),
                    )
                )
                await db.flush()

        except FieldSyncError:
            raise
        except IntegrityError:
            # Registered concurrently between the check and the insert
            logger.info("Registration raced on inspector %s", inspector_id)
            raise ConflictError(context={"inspector_id": inspector_id})
        except Exception as e:
            logger.error("Database error registering inspector %s: %s", inspector_id, describe_db_error(e))
            raise DatabaseError(
                message="Error en el registro en base de datos.",
                detail=describe_db_error(e),
            )

        logger.info("Inspector %s registered", inspector_id)
        return RegisterResponse()


# Stateless; shared by all requests
inspector_service = InspectorService()

"""
FieldSync Backend: Inspector SQLAlchemy Model
==============================================

What:  ORM model for the `inspectores` table.
How:   Column names follow the existing remote schema (quoted camelCase and
       Spanish identifiers); Python attributes use English names.

Lifecycle:
    Created by registration; read by login. Never updated or deleted here.
"""

from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldsync.database import Base


class Inspector(Base):
    """A field inspector account."""

    __tablename__ = "inspectores"

    inspector_id: Mapped[str] = mapped_column(
        "idInspector",
        String(64),
        primary_key=True,
        comment="Caller-supplied identifier, or the inspector code when none is given",
    )
    code: Mapped[str] = mapped_column("codeInsp", String(64), nullable=False)
    name: Mapped[str] = mapped_column("nombre", Text, nullable=False)
    surname: Mapped[str] = mapped_column("apellido", Text, nullable=False)
    stop_assignment: Mapped[str] = mapped_column("paradero", Text, nullable=False)

    # Stored and compared verbatim
    secret: Mapped[str] = mapped_column("contraseña", Text, nullable=False)

    # NULL when the submitted birth date could not be parsed
    birth_date: Mapped[date | None] = mapped_column("fechaNac", Date, nullable=True)

    registered_at: Mapped[datetime] = mapped_column(
        "fechaRegistro",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Inspector(id='{self.inspector_id}', code='{self.code}')>"

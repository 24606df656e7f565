"""Patient document and its denormalised profile projection.

The canonical patient data lives in ``patients.data`` as a JSON document;
``patient_profiles`` holds flattened lists extracted from it for lookups.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from oncosafe.database import Base


class Patient(Base):
    """Patient record owned by exactly one user.

    ``data["id"]`` always equals ``str(id)``.
    """

    __tablename__ = "patients"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )

    __table_args__ = (
        Index("idx_patients_updated_at", "updated_at"),
        Index("idx_patients_data_gin", "data", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, user_id={self.user_id})>"


class PatientProfile(Base):
    """Projection of a patient document.

    Keyed by the patient id in string form; rewritten whenever the patient
    is upserted.
    """

    __tablename__ = "patient_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    patient_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    genetic_profile: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    current_medications: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    allergies: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    comorbidities: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )

    def __repr__(self) -> str:
        return f"<PatientProfile(patient_id={self.patient_id})>"
